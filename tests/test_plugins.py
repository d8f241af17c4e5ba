import unittest

from notedown.models import ExtensionSpec
from notedown.rendering.plugins import (
    USE_FAILED_PREFIX,
    PluginAPI,
    PluginCompileError,
    PluginReturnError,
    compile_plugins,
    evaluate_plugin_source,
)
from notedown.rendering.renderer import render_markdown
from notedown.rendering.templates import TEMPLATE_BASIC, TEMPLATE_MARK, TEMPLATES


def _spec(spec_id, code, **kwargs):
    return {"id": spec_id, "code": code, **kwargs}


class TestEvaluatePluginSource(unittest.TestCase):
    def setUp(self):
        self.api = PluginAPI()

    def test_returns_mapping(self):
        obj = evaluate_plugin_source("return {'name': 'x'}", self.api)
        self.assertEqual(obj, {"name": "x"})

    def test_api_argument_is_bound(self):
        obj = evaluate_plugin_source("return {'html': api.inline('t', 'c')}", self.api)
        self.assertIn("t", obj["html"])

    def test_empty_code(self):
        for code in ("", "   \n\t"):
            with self.assertRaises(PluginCompileError) as ctx:
                evaluate_plugin_source(code, self.api)
            self.assertEqual(str(ctx.exception), "Plugin code is empty")

    def test_syntax_error(self):
        with self.assertRaises(PluginCompileError) as ctx:
            evaluate_plugin_source("return {", self.api)
        self.assertTrue(str(ctx.exception).startswith("SyntaxError"))

    def test_exception_message_is_kept(self):
        with self.assertRaises(PluginCompileError) as ctx:
            evaluate_plugin_source("raise ValueError('boom')", self.api)
        self.assertEqual(str(ctx.exception), "boom")

    def test_non_object_returns(self):
        for code, type_name in (
            ("return 1", "int"),
            ("x = 1", "NoneType"),
            ("return 'text'", "str"),
            ("return [1, 2]", "list"),
        ):
            with self.subTest(code=code):
                with self.assertRaises(PluginReturnError) as ctx:
                    evaluate_plugin_source(code, self.api)
                self.assertEqual(
                    str(ctx.exception), f"Plugin must return an object (got {type_name})"
                )

    def test_class_instance_is_an_object(self):
        code = "class Ext:\n    css = '.y{a:b}'\nreturn Ext()"
        obj = evaluate_plugin_source(code, self.api)
        self.assertEqual(obj.css, ".y{a:b}")

    def test_no_imports_or_files(self):
        with self.assertRaises(PluginCompileError):
            evaluate_plugin_source("import os\nreturn {}", self.api)
        with self.assertRaises(PluginCompileError):
            evaluate_plugin_source("return {'css': open('x').read()}", self.api)
        with self.assertRaises(PluginCompileError):
            evaluate_plugin_source("return eval('{}')", self.api)

    def test_re_is_available(self):
        obj = evaluate_plugin_source("return {'n': re.sub('a', 'b', 'aa')}", self.api)
        self.assertEqual(obj["n"], "bb")


class TestPluginAPI(unittest.TestCase):
    def setUp(self):
        self.api = PluginAPI()

    def test_escape(self):
        self.assertEqual(self.api.escape('<a href="x">&'), "&lt;a href=&quot;x&quot;&gt;&amp;")
        self.assertEqual(self.api.escape(None), "")

    def test_inline_escapes_text(self):
        out = self.api.inline("<b>hi</b>", "spaced")
        self.assertTrue(out.startswith("<span"))
        self.assertIn("&lt;b&gt;hi&lt;/b&gt;", out)
        self.assertIn("spaced", out)

    def test_class_and_tag_are_cleaned(self):
        out = self.api.inline("t", 'x" onclick="y', tag="scr ipt")
        self.assertTrue(out.startswith("<span"))
        self.assertNotIn('"y', out)
        self.assertNotIn("=\"x\" onclick", out)

    def test_block_is_its_own_paragraph(self):
        out = self.api.block("right", "right")
        self.assertTrue(out.startswith("\n\n<div"))
        self.assertTrue(out.endswith("</div>\n\n"))


class TestCompilePlugins(unittest.TestCase):
    def test_errors_are_isolated_per_spec(self):
        result = compile_plugins(
            [
                _spec("a", "return 1"),
                _spec("b", "return {'css': '.x{color:red}'}", enabled=True),
            ]
        )
        self.assertEqual(set(result.errors), {"a"})
        self.assertEqual(result.errors["a"], "Plugin must return an object (got int)")
        self.assertIn(".x{color:red}", result.stylesheet)
        self.assertFalse(result.ok)

    def test_stylesheet_concatenates_in_spec_order(self):
        result = compile_plugins(
            [
                _spec("one", "return {'css': '  .a{b:c}  '}"),
                _spec("two", "return {'css': '.d{e:f}'}"),
                _spec("three", "return {'css': 42}"),
            ]
        )
        self.assertTrue(result.ok)
        self.assertEqual(result.stylesheet, ".a{b:c}\n\n.d{e:f}")
        self.assertEqual(result.handle.stylesheet, result.stylesheet)

    def test_disabled_specs_are_skipped(self):
        result = compile_plugins(
            [_spec("off", "raise RuntimeError('x')", enabled=False)]
        )
        self.assertTrue(result.ok)
        self.assertEqual(result.handle.extensions, ())

    def test_missing_enabled_flag_means_enabled(self):
        result = compile_plugins([_spec("on", "return {'css': '.q{r:s}'}")])
        self.assertEqual(result.stylesheet, ".q{r:s}")

    def test_accepts_models(self):
        result = compile_plugins(
            [ExtensionSpec(id="m", name="Model", code="return {'css': '.m{n:o}'}")]
        )
        self.assertEqual(result.handle.extensions[0].name, "Model")

    def test_invalid_spec_shape(self):
        result = compile_plugins([{"name": "no id"}])
        self.assertIn("#0", result.errors)

    def test_use_failure_is_prefixed_and_css_kept(self):
        code = (
            "def use(md):\n"
            "    raise RuntimeError('rule table locked')\n"
            "return {'css': '.u{v:w}', 'use': use}"
        )
        result = compile_plugins([_spec("u", code)])
        self.assertEqual(result.errors["u"], USE_FAILED_PREFIX + "rule table locked")
        self.assertEqual(result.stylesheet, ".u{v:w}")

    def test_use_failure_rolls_back_partial_registration(self):
        code = (
            "def use(md):\n"
            "    md.disable('emphasis')\n"
            "    raise RuntimeError('half done')\n"
            "return {'use': use}"
        )
        result = compile_plugins([_spec("half", code)])
        self.assertIn("half", result.errors)
        self.assertIn("<em>a</em>", render_markdown("*a*", result.handle))

    def test_use_failure_keeps_earlier_rules(self):
        broken = "def use(md):\n    raise RuntimeError('no')\nreturn {'use': use}"
        result = compile_plugins(
            [_spec("mark", TEMPLATE_MARK), _spec("broken", broken)]
        )
        self.assertEqual(set(result.errors), {"broken"})
        self.assertIn("<mark>hi</mark>", render_markdown("==hi==", result.handle))

    def test_allow_list_requests(self):
        code = (
            "return {'sanitize': {'add_tags': ['mark', 'script', 'bad tag'],"
            " 'add_attrs': ['data-x', 'onclick', 'srcdoc']}}"
        )
        allow = compile_plugins([_spec("s", code)]).handle.allow_list
        self.assertIn("mark", allow.tags)
        self.assertNotIn("script", allow.tags)
        self.assertNotIn("bad tag", allow.tags)
        self.assertIn("data-x", allow.attributes)
        self.assertNotIn("onclick", allow.attributes)
        self.assertNotIn("srcdoc", allow.attributes)

    def test_non_list_sanitize_request_is_ignored(self):
        result = compile_plugins(
            [
                _spec("bad", "return {'sanitize': {'add_tags': 5, 'add_attrs': 7}}"),
                _spec("good", "return {'css': '.x{color:red}'}"),
            ]
        )
        self.assertNotIn("good", result.errors)
        self.assertEqual(result.stylesheet, ".x{color:red}")
        self.assertEqual(result.handle.extensions[0].allow_list.tags, frozenset())

    def test_raising_member_is_isolated(self):
        code = (
            "class Ext:\n"
            "    @property\n"
            "    def css(self):\n"
            "        raise ValueError('boom')\n"
            "return Ext()"
        )
        result = compile_plugins(
            [_spec("bad", code), _spec("good", "return {'css': '.x{color:red}'}")]
        )
        self.assertEqual(set(result.errors), {"bad"})
        self.assertIn("boom", result.errors["bad"])
        self.assertEqual(result.stylesheet, ".x{color:red}")
        self.assertEqual([e.spec_id for e in result.handle.extensions], ["good"])

    def test_non_string_members_fall_back(self):
        result = compile_plugins(
            [_spec("n", "return {'name': 5, 'css': ['.a{}']}", name="Named")]
        )
        self.assertTrue(result.ok)
        self.assertEqual(result.handle.extensions[0].name, "Named")
        self.assertEqual(result.stylesheet, "")

    def test_deterministic(self):
        specs = [_spec("a", "return 1"), _spec("b", TEMPLATE_BASIC)]
        first = compile_plugins(specs)
        second = compile_plugins(specs)
        self.assertEqual(first.stylesheet, second.stylesheet)
        self.assertEqual(dict(first.errors), dict(second.errors))

    def test_handles_do_not_share_parsers(self):
        with_mark = compile_plugins([_spec("mark", TEMPLATE_MARK)])
        without = compile_plugins([])
        self.assertIsNot(with_mark.handle.md, without.handle.md)
        self.assertNotIn("<mark>", render_markdown("==hi==", without.handle))


class TestPreprocess(unittest.TestCase):
    def test_transforms_chain_in_order(self):
        result = compile_plugins(
            [
                _spec("one", "return {'transform': lambda md, api: md + ' one'}"),
                _spec("two", "return {'transform': lambda md, api: md + ' two'}"),
            ]
        )
        self.assertEqual(result.handle.preprocess("x"), "x one two")

    def test_single_argument_transform(self):
        result = compile_plugins(
            [_spec("up", "return {'transform': lambda md: md.upper()}")]
        )
        self.assertEqual(result.handle.preprocess("abc"), "ABC")

    def test_failing_transform_is_skipped(self):
        result = compile_plugins(
            [
                _spec("bad", "def t(md, api):\n    raise ValueError('x')\nreturn {'transform': t}"),
                _spec("none", "return {'transform': lambda md, api: None}"),
                _spec("good", "return {'transform': lambda md, api: md + '!'}"),
            ]
        )
        self.assertTrue(result.ok)
        self.assertEqual(result.handle.preprocess("hey"), "hey!")

    def test_non_callable_transform_is_ignored(self):
        result = compile_plugins([_spec("t", "return {'transform': 'nope'}")])
        self.assertEqual(result.handle.preprocess("same"), "same")


class TestTemplates(unittest.TestCase):
    def test_templates_compile_cleanly(self):
        for name, source in TEMPLATES.items():
            with self.subTest(template=name):
                result = compile_plugins([_spec(name, source)])
                self.assertTrue(result.ok, dict(result.errors))
                self.assertTrue(result.stylesheet)

    def test_basic_template_output(self):
        handle = compile_plugins([_spec("basic", TEMPLATE_BASIC)]).handle
        out = render_markdown("Say !hey! now\n\n-> To the right ->", handle)
        self.assertIn('<span class="spaced">hey</span>', out)
        self.assertIn('<div class="right">To the right</div>', out)

    def test_mark_template_output(self):
        handle = compile_plugins([_spec("mark", TEMPLATE_MARK)]).handle
        self.assertIn("<mark>hi</mark>", render_markdown("a ==hi== b", handle))


if __name__ == "__main__":
    unittest.main()
