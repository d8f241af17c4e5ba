import json
import logging
import os
import tempfile
import unittest

from typer.testing import CliRunner

from notedown.cli.main import app

FIXTURE = os.path.join(os.path.dirname(__file__), "fixtures", "note_fixture.json")


class TestCli(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, name, text):
        path = os.path.join(self.tmp, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_scope(self):
        path = self._write("style.css", ":root{--a:1}\n.a{b:c}")
        result = self.runner.invoke(app, ["scope", "--root", ".r", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(".r{--a:1}", result.output)
        self.assertIn(".r .a{b:c}", result.output)

    def test_highlight(self):
        path = self._write("note.md", "# Title")
        result = self.runner.invoke(app, ["highlight", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('<span class="md-heading">Title</span>', result.output)

    def test_render_markdown_file(self):
        path = self._write("note.md", "**hi** <script>x()</script>")
        result = self.runner.invoke(app, ["render", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("<strong>hi</strong>", result.output)
        self.assertNotIn("<script", result.output)

    def test_render_library_to_file(self):
        out_path = os.path.join(self.tmp, "out.html")
        result = self.runner.invoke(app, ["render", "--page", "-o", out_path, FIXTURE])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("broken", result.output)
        with open(out_path, encoding="utf-8") as f:
            page = f.read()
        self.assertIn("<mark>marked</mark>", page)
        self.assertIn('class="note-scope-welcome"', page)

    def test_render_with_extra_plugin(self):
        note = self._write("note.md", "!hey!")
        plugin = self._write(
            "spaced.py",
            "return {'transform': lambda md, api: md.replace('!hey!', api.inline('hey', 'spaced'))}",
        )
        result = self.runner.invoke(app, ["render", "-p", plugin, note])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('<span class="spaced">hey</span>', result.output)

    def test_render_escapes_stylesheet_breakout(self):
        css = self._write("evil.css", "p{color:red}</style><script>alert(1)</script>")
        note = self._write("note.md", "hi")
        result = self.runner.invoke(app, ["render", "--css", css, note])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.lower().count("</style"), 1)
        self.assertNotIn("<script", result.output.lower())

    def test_render_unknown_note(self):
        result = self.runner.invoke(app, ["render", "--note-id", "missing", FIXTURE])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)

    def test_plugins_check(self):
        ok = self._write("ok.json", json.dumps([{"id": "a", "code": "return {'css': '.a{b:c}'}"}]))
        result = self.runner.invoke(app, ["plugins", "check", ok])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(".a{b:c}", result.output)

        bad = self._write("bad.json", json.dumps({"markdownPlugins": [{"id": "a", "code": "return 1"}]}))
        result = self.runner.invoke(app, ["plugins", "check", bad])
        self.assertEqual(result.exit_code, 1)

    def test_debug_env_enables_debug_logs(self):
        logger = logging.getLogger("notedown")
        previous = logger.level
        try:
            path = self._write("note.md", "x")
            result = self.runner.invoke(app, ["highlight", path], env={"NOTEDOWN_DEBUG": "1"})
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertEqual(logger.level, logging.DEBUG)
        finally:
            logger.setLevel(previous)

    def test_plugins_template(self):
        result = self.runner.invoke(app, ["plugins", "template", "mark"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("def use(md):", result.output)

        result = self.runner.invoke(app, ["plugins", "template", "nope"])
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
