"""
Runtime for user-authored markdown extensions.

An extension spec's ``code`` is Python source that forms the body of an
implicit function receiving a single ``api`` argument; it must ``return`` an
object (a mapping, or an object with attributes). Recognized members:

  - ``name``: display name
  - ``css``: stylesheet text (scoped by the host)
  - ``transform(markdown, api)``: text preprocessor run before parsing
  - ``use(md)``: registers block/inline rules on the handle's MarkdownIt
  - ``sanitize``: ``{"add_tags": [...], "add_attrs": [...]}``

Example:

    return {
        "name": "Spacing",
        "css": ".spaced { letter-spacing: .14em; }",
        "transform": lambda md, api: re.sub(
            r"!([^!\\n]+)!", lambda m: api.inline(m.group(1), "spaced"), md
        ),
    }

Every failure is isolated to its spec: compile errors are collected per spec
id, preprocessor errors skip that preprocessor for one call only. The
namespace a spec runs in is capability limited (no imports, files, or
eval), which keeps plugins pure; it is not a security sandbox.
"""

from __future__ import annotations

import ast
import builtins
import copy
import html
import inspect
import logging
import re
from dataclasses import dataclass, field
from types import GeneratorType, MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from markdown_it import MarkdownIt
from pydantic import ValidationError
from tinyhtml import h

from ..domain import AllowListAdditions, CompiledExtension
from ..models import ExtensionSpec
from .options import DEFAULT_CONFIG, RenderConfig
from .parser import create_parser
from .sanitizer import AllowList, build_allow_list, clean_attribute_names, clean_tag_names

LOGGER = logging.getLogger(__name__)

USE_FAILED_PREFIX = "use() failed: "


# ------------------------------- Errors --------------------------------------


class PluginError(Exception):
    """Base extension runtime error."""


class PluginCompileError(PluginError):
    """Empty source, syntax error, or an exception while evaluating."""


class PluginReturnError(PluginError):
    """The source did not return an object."""


# ------------------------------- Capability API ------------------------------

_TAG_RE = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")
_CLASS_STRIP_RE = re.compile(r"[^A-Za-z0-9_ -]")


def _safe_tag(tag: Optional[str], default: str) -> str:
    if isinstance(tag, str) and _TAG_RE.match(tag):
        return tag.lower()
    return default


def _safe_class(class_name: Optional[str]) -> str:
    return " ".join(_CLASS_STRIP_RE.sub("", str(class_name or "")).split())


class PluginAPI:
    """The one object handed to extension code."""

    def escape(self, text: Any) -> str:
        return html.escape("" if text is None else str(text), quote=True)

    def _element(self, text: Any, class_name: Optional[str], tag: str) -> str:
        attrs: Dict[str, str] = {}
        cls = _safe_class(class_name)
        if cls:
            attrs["class"] = cls
        return h(tag, **attrs)("" if text is None else str(text)).render()

    def inline(self, text: Any, class_name: Optional[str] = None, tag: str = "span") -> str:
        """Escaped ``text`` wrapped in an inline element."""
        return self._element(text, class_name, _safe_tag(tag, "span"))

    def block(self, text: Any, class_name: Optional[str] = None, tag: str = "div") -> str:
        """Escaped ``text`` wrapped in a block element on its own paragraph."""
        return "\n\n" + self._element(text, class_name, _safe_tag(tag, "div")) + "\n\n"


_SAFE_BUILTIN_NAMES = (
    "abs", "all", "any", "bool", "callable", "chr", "dict", "divmod",
    "enumerate", "filter", "float", "format", "frozenset", "hasattr", "hash",
    "int", "isinstance", "issubclass", "iter", "len", "list", "map", "max",
    "min", "next", "object", "ord", "pow", "range", "repr", "reversed",
    "round", "set", "slice", "sorted", "str", "sum", "tuple", "zip",
    "classmethod", "staticmethod", "property", "super", "__build_class__",
    "Exception", "ValueError", "TypeError", "KeyError", "IndexError",
    "LookupError", "RuntimeError", "StopIteration", "NotImplementedError",
)
SAFE_BUILTINS: Mapping[str, Any] = MappingProxyType(
    {name: getattr(builtins, name) for name in _SAFE_BUILTIN_NAMES}
)

# Values that are not "an object" for the purpose of the plugin contract.
_NON_OBJECT_TYPES = (
    type(None), bool, int, float, complex, str, bytes, bytearray,
    list, tuple, set, frozenset, GeneratorType,
)

_ENTRY_NAME = "_notedown_plugin"
_ENTRY_TEMPLATE = ast.parse(f"def {_ENTRY_NAME}(api):\n    pass\n")


def _describe(exc: BaseException) -> str:
    if isinstance(exc, SyntaxError):
        where = f" (line {exc.lineno})" if exc.lineno else ""
        return f"SyntaxError: {exc.msg}{where}"
    return str(exc) or type(exc).__name__


def evaluate_plugin_source(code: str, api: PluginAPI, filename: str = "<plugin>") -> Any:
    """Run ``code`` as the body of ``def _(api): ...`` and return its result."""
    if not code or not code.strip():
        raise PluginCompileError("Plugin code is empty")
    try:
        module = ast.parse(code, filename=filename, mode="exec")
        tree = copy.deepcopy(_ENTRY_TEMPLATE)
        tree.body[0].body = module.body or [ast.Pass()]
        ast.fix_missing_locations(tree)
        compiled = compile(tree, filename, "exec")
    except SyntaxError as e:
        raise PluginCompileError(_describe(e)) from e

    namespace: Dict[str, Any] = {
        "__builtins__": dict(SAFE_BUILTINS),
        "__name__": "notedown_plugin",
        "re": re,
    }
    try:
        exec(compiled, namespace)
        result = namespace[_ENTRY_NAME](api)
    except Exception as e:
        raise PluginCompileError(_describe(e)) from e

    if isinstance(result, _NON_OBJECT_TYPES) or inspect.isroutine(result):
        raise PluginReturnError(
            f"Plugin must return an object (got {type(result).__name__})"
        )
    return result


def _member(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _allow_list_request(obj: Any) -> AllowListAdditions:
    req = _member(obj, "sanitize")
    if req is None:
        return AllowListAdditions()
    tags = _member(req, "add_tags") or ()
    attrs = _member(req, "add_attrs") or _member(req, "add_attributes") or ()
    if isinstance(tags, str):
        tags = (tags,)
    if isinstance(attrs, str):
        attrs = (attrs,)
    return AllowListAdditions(
        tags=clean_tag_names(tags), attributes=clean_attribute_names(attrs)
    )


def _read_declarations(obj: Any) -> Tuple[Any, ...]:
    """Pull the recognized members off a plugin object; may raise."""
    transform = _member(obj, "transform")
    if transform is not None and not callable(transform):
        transform = None
    use = _member(obj, "use")
    if use is not None and not callable(use):
        use = None
    css = _member(obj, "css")
    name = _member(obj, "name")
    return (
        transform,
        use,
        css if isinstance(css, str) else None,
        name if isinstance(name, str) else None,
        _allow_list_request(obj),
    )


def _call_transform(fn: Callable[..., Any], text: str, api: PluginAPI) -> Any:
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return fn(text, api)
    positional = [
        p for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if len(positional) >= 2 or any(p.kind == p.VAR_POSITIONAL for p in params):
        return fn(text, api)
    return fn(text)


# ------------------------------- Runtime handle ------------------------------


@dataclass(frozen=True)
class PluginRuntime:
    """Render-ready artifact compiled from one ordered set of enabled specs.

    The parser's rule table is fixed once compilation finishes; a handle is
    never extended afterwards. Build a new one when the spec set changes.
    """

    md: MarkdownIt
    extensions: Tuple[CompiledExtension, ...] = ()
    allow_list: AllowList = field(default_factory=AllowList)
    stylesheet: str = ""
    config: RenderConfig = DEFAULT_CONFIG
    api: PluginAPI = field(default_factory=PluginAPI)

    def preprocess(self, text: str) -> str:
        """Run every transform in spec order; a failing one is skipped."""
        out = text
        for ext in self.extensions:
            if ext.transform is None:
                continue
            try:
                result = _call_transform(ext.transform, out, self.api)
            except Exception as e:
                LOGGER.debug(
                    "notedown.plugins.transform_fail id=%s %s", ext.spec_id, e
                )
                continue
            if not isinstance(result, str):
                LOGGER.debug(
                    "notedown.plugins.transform_bad_return id=%s type=%s",
                    ext.spec_id,
                    type(result).__name__,
                )
                continue
            out = result
        return out


@dataclass(frozen=True)
class CompileResult:
    handle: PluginRuntime
    stylesheet: str
    errors: Mapping[str, str]

    @property
    def ok(self) -> bool:
        return not self.errors


SpecLike = Union[ExtensionSpec, Mapping[str, Any]]


def _coerce_specs(
    specs: Iterable[SpecLike], errors: Dict[str, str]
) -> List[ExtensionSpec]:
    out: List[ExtensionSpec] = []
    for idx, raw in enumerate(specs or ()):
        if isinstance(raw, ExtensionSpec):
            out.append(raw)
            continue
        try:
            out.append(ExtensionSpec.model_validate(raw))
        except ValidationError as e:
            key = str(_member(raw, "id") or f"#{idx}")
            LOGGER.warning("notedown.plugins.invalid_spec id=%s", key)
            errors[key] = f"Invalid extension spec: {e.error_count()} error(s)"
    return out


def _install_rules(
    md: MarkdownIt, hooks: List[Tuple[str, Callable[..., Any]]]
) -> None:
    for spec_id, hook in hooks:
        hook(md)
        LOGGER.debug("notedown.plugins.rules_installed id=%s", spec_id)


def compile_plugins(
    specs: Iterable[SpecLike], config: Optional[RenderConfig] = None
) -> CompileResult:
    """Compile the enabled ``specs`` (in order) into a runtime handle."""
    cfg = config or DEFAULT_CONFIG
    errors: Dict[str, str] = {}
    api = PluginAPI()
    md = create_parser(cfg)
    installed: List[Tuple[str, Callable[..., Any]]] = []
    extensions: List[CompiledExtension] = []
    stylesheets: List[str] = []

    for spec in _coerce_specs(specs, errors):
        if not spec.enabled:
            continue
        try:
            obj = evaluate_plugin_source(
                spec.code, api, filename=f"<plugin {spec.id}>"
            )
        except PluginError as e:
            LOGGER.debug("notedown.plugins.compile_fail id=%s %s", spec.id, e)
            errors[spec.id] = str(e)
            continue

        try:
            transform, use, css, name, allow_list = _read_declarations(obj)
        except Exception as e:
            LOGGER.debug("notedown.plugins.bad_declarations id=%s %s", spec.id, e)
            errors[spec.id] = f"Invalid plugin object: {_describe(e)}"
            continue

        if use is not None:
            try:
                use(md)
                installed.append((spec.id, use))
            except Exception as e:
                LOGGER.debug("notedown.plugins.use_fail id=%s %s", spec.id, e)
                errors[spec.id] = f"{USE_FAILED_PREFIX}{_describe(e)}"
                use = None
                # Drop whatever the failed hook managed to register.
                md = create_parser(cfg)
                try:
                    _install_rules(md, installed)
                except Exception as replay_err:
                    LOGGER.warning(
                        "notedown.plugins.replay_fail %s", _describe(replay_err)
                    )
                    md = create_parser(cfg)
                    installed = []

        if css and css.strip():
            stylesheets.append(css)
        extensions.append(
            CompiledExtension(
                spec_id=spec.id,
                name=name if isinstance(name, str) else (spec.name or None),
                stylesheet=css,
                transform=transform,
                register_rules=use,
                allow_list=allow_list,
            )
        )

    stylesheet = "\n\n".join(s.strip() for s in stylesheets)
    handle = PluginRuntime(
        md=md,
        extensions=tuple(extensions),
        allow_list=build_allow_list(ext.allow_list for ext in extensions),
        stylesheet=stylesheet,
        config=cfg,
        api=api,
    )
    LOGGER.debug(
        "notedown.plugins.compiled extensions=%d errors=%d",
        len(extensions),
        len(errors),
    )
    return CompileResult(
        handle=handle, stylesheet=stylesheet, errors=MappingProxyType(errors)
    )
