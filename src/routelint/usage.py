"""Route literal discovery and handler extraction for Python source.

Finds the string literals that are route templates and, where possible,
the function they route to::

    @app.get("/users/{id}")              # decorator: attribute style
    def show(id: int): ...

    app.add_route("/users/{id}", show)   # map call: handler looked up by name
    app.map_get("/items/{id}", lambda id: id)

    ROUTE = "/files/{path}"  # lang=route

The walk over the syntax tree is an explicit stack with a local
accumulator; the result is an immutable tuple of ``RouteLiteral``.
"""

from __future__ import annotations

import ast
import builtins
import io
import logging
import tokenize
from dataclasses import dataclass

from routelint.config import LintConfig
from routelint.policy import NONE_TYPE, TypeRef
from routelint.text import SourceText, TextSpan

logger = logging.getLogger("routelint.usage")

_BUILTIN_NAMES = frozenset(dir(builtins))
_ANNOTATED = frozenset({"typing.Annotated", "typing_extensions.Annotated"})
_TYPING_ALIASES = {"typing_extensions": "typing"}

FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef


# ---------------------------------------------------------------------------
# Records handed to the analyzer
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HandlerParameter:
    """A formal parameter of a route handler."""

    name: str
    type: TypeRef | None
    span: TextSpan


@dataclass(frozen=True, slots=True)
class Insertion:
    """Where and how a new parameter can be added to a handler signature."""

    offset: int
    leading: str = ""
    trailing: str = ""
    keyword_only: bool = False
    after_default: bool = False
    annotations: bool = True


@dataclass(frozen=True, slots=True)
class Handler:
    """The function or lambda a route template is attached to."""

    name: str
    parameters: tuple[HandlerParameter, ...]
    span: TextSpan
    insertion: Insertion


@dataclass(frozen=True, slots=True)
class UsageContext:
    """How a route literal is used.

    ``is_attribute_style`` is True for decorator routes, which enables
    token replacement syntax in the template.
    """

    handler: Handler | None = None
    is_attribute_style: bool = False


@dataclass(frozen=True, slots=True)
class RouteLiteral:
    """A string-literal token that holds a route template."""

    token: str
    span: TextSpan
    usage: UsageContext


# ---------------------------------------------------------------------------
# Annotation resolution
# ---------------------------------------------------------------------------


class ImportTable:
    """Resolves annotation expressions to ``TypeRef`` using a module's imports."""

    __slots__ = ("_local", "_modules", "_names")

    def __init__(
        self,
        modules: dict[str, str] | None = None,
        names: dict[str, tuple[str, str]] | None = None,
        local: frozenset[str] = frozenset(),
    ) -> None:
        self._modules = modules or {}
        self._names = names or {}
        self._local = local

    @classmethod
    def from_module(cls, module: ast.Module) -> ImportTable:
        modules: dict[str, str] = {}
        names: dict[str, tuple[str, str]] = {}
        for node in ast.walk(module):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.asname:
                        modules[alias.asname] = alias.name
                    else:
                        head = alias.name.split(".", 1)[0]
                        modules[head] = head
            elif isinstance(node, ast.ImportFrom) and node.module and not node.level:
                for alias in node.names:
                    if alias.name != "*":
                        names[alias.asname or alias.name] = (node.module, alias.name)
        local = frozenset(
            node.name for node in module.body if isinstance(node, ast.ClassDef)
        )
        return cls(modules, names, local)

    def resolve(self, expr: ast.expr | None) -> TypeRef | None:
        """Resolve an annotation. ``None`` means there was no annotation."""
        if expr is None:
            return None
        return self._resolve(expr)

    def _resolve(self, expr: ast.expr) -> TypeRef:
        match expr:
            case ast.Constant(value=None):
                return NONE_TYPE
            case ast.Constant(value=str(text)):
                try:
                    parsed = ast.parse(text.strip(), mode="eval")
                except SyntaxError:
                    return TypeRef(None, text)
                return self._resolve(parsed.body)
            case ast.Name(id=name):
                return self._resolve_name(name)
            case ast.Attribute():
                return self._resolve_dotted(expr)
            case ast.Subscript(value=value, slice=index):
                base = self._resolve(value)
                elements = index.elts if isinstance(index, ast.Tuple) else [index]
                args = tuple(self._resolve(element) for element in elements)
                if base.qualified_name in _ANNOTATED and args:
                    return args[0]
                return TypeRef(base.module, base.name, args)
            case ast.BinOp(left=left, op=ast.BitOr(), right=right):
                members: list[TypeRef] = []
                for side in (self._resolve(left), self._resolve(right)):
                    if side.qualified_name == "types.UnionType":
                        members.extend(side.args)
                    else:
                        members.append(side)
                return TypeRef("types", "UnionType", tuple(members))
        return TypeRef(None, ast.unparse(expr))

    def _resolve_name(self, name: str) -> TypeRef:
        if name in self._names:
            module, original = self._names[name]
            return TypeRef(_TYPING_ALIASES.get(module, module), original)
        if name in self._local:
            return TypeRef("__module__", name)
        if name in _BUILTIN_NAMES:
            return TypeRef("builtins", name)
        return TypeRef(None, name)

    def _resolve_dotted(self, expr: ast.Attribute) -> TypeRef:
        parts: list[str] = []
        node: ast.expr = expr
        while isinstance(node, ast.Attribute):
            parts.append(node.attr)
            node = node.value
        if not isinstance(node, ast.Name):
            return TypeRef(None, ast.unparse(expr))
        parts.reverse()
        head = node.id
        if head in self._modules:
            prefix = self._modules[head]
        elif head in self._names:
            prefix = ".".join(self._names[head])
        else:
            return TypeRef(None, ".".join([head, *parts]))
        module = ".".join([prefix, *parts[:-1]])
        return TypeRef(_TYPING_ALIASES.get(module, module), parts[-1])


# ---------------------------------------------------------------------------
# Handler extraction
# ---------------------------------------------------------------------------


def _parameter_entries(
    args: ast.arguments, source: SourceText
) -> list[tuple[ast.arg, TextSpan]]:
    """Every named parameter with its span, default value included."""
    positional = [*args.posonlyargs, *args.args]
    defaults: list[ast.expr | None] = [None] * (len(positional) - len(args.defaults))
    defaults.extend(args.defaults)
    entries: list[tuple[ast.arg, TextSpan]] = []
    for arg, default in [*zip(positional, defaults), *zip(args.kwonlyargs, args.kw_defaults)]:
        span = source.node_span(arg)
        if default is not None:
            span = span.union(source.node_span(default))
        entries.append((arg, span))
    return entries


def _insertion(
    args: ast.arguments,
    source: SourceText,
    entries: list[tuple[ast.arg, TextSpan]],
    *,
    empty_offset: int,
    empty_leading: str,
    annotations: bool,
) -> Insertion:
    keyword_only = args.vararg is not None or bool(args.kwonlyargs)
    after_default = bool(args.defaults)
    if args.kwarg is not None:
        kwarg_start = source.node_span(args.kwarg).start
        offset = source.text.rfind("**", 0, kwarg_start)
        return Insertion(offset, "", ", ", keyword_only, after_default, annotations)

    ends = [span.end for _, span in entries]
    if args.vararg is not None:
        ends.append(source.node_span(args.vararg).end)
    if ends:
        return Insertion(max(ends), ", ", "", keyword_only, after_default, annotations)
    return Insertion(empty_offset, empty_leading, "", keyword_only, after_default, annotations)


def handler_from_function(
    node: FunctionNode,
    source: SourceText,
    imports: ImportTable,
    *,
    is_method: bool = False,
) -> Handler:
    """Build a ``Handler`` from a ``def``; ``self``/``cls`` are skipped for methods."""
    entries = _parameter_entries(node.args, source)
    is_static = any(
        isinstance(d, ast.Name) and d.id == "staticmethod" for d in node.decorator_list
    )
    visible = entries
    if is_method and not is_static and [*node.args.posonlyargs, *node.args.args]:
        visible = entries[1:]

    keyword = source.text.find("def", source.offset_of(node.lineno, node.col_offset))
    name_start = source.text.find(node.name, keyword + len("def"))
    name_span = TextSpan(name_start, len(node.name))
    open_paren = source.text.find("(", name_span.end)
    insertion = _insertion(
        node.args,
        source,
        entries,
        empty_offset=open_paren + 1,
        empty_leading="",
        annotations=True,
    )
    parameters = tuple(
        HandlerParameter(arg.arg, imports.resolve(arg.annotation), span) for arg, span in visible
    )
    return Handler(node.name, parameters, name_span, insertion)


def handler_from_lambda(node: ast.Lambda, source: SourceText) -> Handler:
    entries = _parameter_entries(node.args, source)
    span = source.node_span(node)
    insertion = _insertion(
        node.args,
        source,
        entries,
        empty_offset=span.start + len("lambda"),
        empty_leading=" ",
        annotations=False,
    )
    parameters = tuple(HandlerParameter(arg.arg, None, span) for arg, span in entries)
    return Handler("<lambda>", parameters, TextSpan(span.start, len("lambda")), insertion)


# ---------------------------------------------------------------------------
# Route literal discovery
# ---------------------------------------------------------------------------


def _callee_name(call: ast.Call) -> str | None:
    match call.func:
        case ast.Attribute(attr=attr):
            return attr
        case ast.Name(id=name):
            return name
    return None


def _template_argument(call: ast.Call, config: LintConfig) -> ast.Constant | None:
    """The string literal carrying the template, positional or keyword."""
    candidates: list[ast.expr] = []
    if call.args:
        candidates.append(call.args[0])
    candidates.extend(kw.value for kw in call.keywords if kw.arg in config.route_keywords)
    for candidate in candidates:
        if isinstance(candidate, ast.Constant) and isinstance(candidate.value, str):
            return candidate
    return None


def _marked_lines(source: SourceText, marker: str) -> frozenset[int]:
    """Lines holding a literal marked with a ``# lang=route`` comment."""
    if not marker or marker not in source.text:
        return frozenset()
    lines: set[int] = set()
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(source.text).readline))
    except (tokenize.TokenError, SyntaxError) as exc:
        logger.debug("Cannot tokenize %s for route markers: %s", source.path, exc)
        return frozenset()
    for token in tokens:
        if token.type != tokenize.COMMENT:
            continue
        if token.string.lstrip("#").strip().lower() != marker.lower():
            continue
        line = token.start[0]
        standalone = token.line.lstrip().startswith("#")
        lines.add(line + 1 if standalone else line)
    return frozenset(lines)


class _Discovery:
    """Per-module state shared by the discovery helpers."""

    __slots__ = ("config", "functions", "imports", "source")

    def __init__(self, module: ast.Module, source: SourceText, config: LintConfig) -> None:
        self.source = source
        self.config = config
        self.imports = ImportTable.from_module(module)
        self.functions: dict[str, FunctionNode] = {
            node.name: node
            for node in module.body
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
        }

    def literal(self, node: ast.Constant, usage: UsageContext) -> RouteLiteral:
        span = self.source.node_span(node)
        return RouteLiteral(self.source[span], span, usage)

    def map_handler(self, call: ast.Call) -> Handler | None:
        candidates = list(call.args[1:])
        candidates.extend(kw.value for kw in call.keywords if kw.arg in self.config.handler_keywords)
        for candidate in candidates:
            if isinstance(candidate, ast.Lambda):
                return handler_from_lambda(candidate, self.source)
            if isinstance(candidate, ast.Name) and candidate.id in self.functions:
                return handler_from_function(self.functions[candidate.id], self.source, self.imports)
        logger.debug(
            "No resolvable handler for %s call at %s:%d",
            _callee_name(call),
            self.source.path,
            call.lineno,
        )
        return None


def find_route_literals(
    module: ast.Module,
    source: SourceText,
    config: LintConfig,
) -> tuple[RouteLiteral, ...]:
    """Every route-template literal in *module*, in source order."""
    discovery = _Discovery(module, source, config)
    marked = _marked_lines(source, config.marker_comment)
    found: list[RouteLiteral] = []
    claimed: set[int] = set()

    stack: list[tuple[ast.AST, bool]] = [(module, False)]
    while stack:
        node, in_class = stack.pop()

        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            for decorator in node.decorator_list:
                if not isinstance(decorator, ast.Call):
                    continue
                if _callee_name(decorator) not in config.route_decorators:
                    continue
                template = _template_argument(decorator, config)
                if template is None:
                    continue
                handler = handler_from_function(
                    node, source, discovery.imports, is_method=in_class
                )
                usage = UsageContext(handler=handler, is_attribute_style=True)
                found.append(discovery.literal(template, usage))
                claimed.add(id(template))

        elif isinstance(node, ast.Call) and _callee_name(node) in config.map_calls:
            template = _template_argument(node, config)
            if template is not None and id(template) not in claimed:
                usage = UsageContext(handler=discovery.map_handler(node))
                found.append(discovery.literal(template, usage))
                claimed.add(id(template))

        elif (
            isinstance(node, ast.Constant)
            and isinstance(node.value, str)
            and node.lineno in marked
            and id(node) not in claimed
        ):
            found.append(discovery.literal(node, UsageContext()))
            claimed.add(id(node))

        in_body = isinstance(node, ast.ClassDef)
        children = [(child, in_body) for child in ast.iter_child_nodes(node)]
        stack.extend(reversed(children))

    return tuple(sorted(found, key=lambda literal: literal.span.start))
