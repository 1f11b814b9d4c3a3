"""
Module Transformer - Rewrites ES module declarations for the bundle loader.

This module contains the ModuleTransformer class that turns a Lark parse tree
(from parsing a JavaScript file with module_grammar) into the list of
dependency specifiers plus code written against the loader contract:
`require`, `module` and `exports`.
"""

import re
from typing import List, NamedTuple

from lark import Transformer, Token, Tree

from packcore.literals import js_string, js_string_value


class TranspileResult(NamedTuple):
    """What the transpiler hands back for one module."""
    dependencies: List[str]
    code: str


class Declaration:
    """One top-level import or export declaration and the source span it covers."""

    def __init__(self, kind, start, end, specifier=None, bindings=None, statement=True,
                 params=None, body=None, opens_class=False):
        self.kind = kind
        self.start = start
        self.end = end
        self.specifier = specifier
        # (exported_or_imported, local) pairs, meaning depends on kind
        self.bindings = list(bindings or [])
        # True when the whole statement is removed, False when only a prefix is
        self.statement = statement
        # Groups the rule consumed: a default function's parameters, a default class body
        self.params = params
        self.body = body
        # True when a class body brace follows the declaration
        self.opens_class = opens_class

    def __repr__(self):
        return f"Declaration({self.kind!r}, {self.start}, {self.end}, {self.specifier!r}, {self.bindings!r})"


def _is_punct(item, value):
    return isinstance(item, Token) and item.type == 'PUNCT' and item == value


def _first_line(item):
    if isinstance(item, Token):
        return item.line
    if isinstance(item, Tree):
        return item.meta.line
    return None


def _last_line(item):
    if isinstance(item, Token):
        return item.end_line
    if isinstance(item, Tree):
        return item.meta.end_line
    return None


def _split_commas(items):
    """Split a group's children into comma-separated elements."""
    elements = [[]]
    for item in items:
        if _is_punct(item, ','):
            elements.append([])
        else:
            elements[-1].append(item)
    return [element for element in elements if element]


def _is_ident(item, words=None):
    return isinstance(item, Token) and item.type == 'IDENT' and (words is None or item in words)


def _is_group(item, kind):
    return isinstance(item, Tree) and item.data == kind


def pattern_names(node):
    """Return the names bound by an identifier, a destructuring pattern or a parameter list."""
    if isinstance(node, Token):
        return [str(node)] if node.type == 'IDENT' else []
    if not isinstance(node, Tree) or node.data not in ('brace', 'bracket', 'paren'):
        return []

    names = []
    for element in _split_commas(node.children[1:-1]):
        if _is_punct(element[0], '...'):
            element = element[1:]
        if node.data == 'brace':
            colons = [i for i, item in enumerate(element) if _is_punct(item, ':')]
            if colons:
                element = element[colons[0] + 1:]
        defaults = [i for i, item in enumerate(element) if _is_punct(item, '=')]
        if defaults:
            element = element[:defaults[0]]
        if element:
            names.extend(pattern_names(element[0]))
    return names


def trailing_declarator_names(items, index):
    """Collect names from `, name = ...` declarators that follow an exported binding.

    Scanning stops at a semicolon, at the next declaration, or at a line break
    where automatic semicolon insertion would end the statement.
    """
    names = []
    previous = items[index - 1] if index > 0 else None
    expect_binding = False
    while index < len(items):
        item = items[index]
        if isinstance(item, Declaration) or _is_punct(item, ';'):
            break
        if previous is not None and _first_line(item) and _last_line(previous) and \
                _first_line(item) > _last_line(previous):
            continues = (isinstance(previous, Token) and previous.type == 'PUNCT') or \
                        (isinstance(item, Token) and item.type in ('PUNCT', 'MEMBER')) or \
                        (isinstance(item, Tree) and item.data in ('paren', 'bracket'))
            if not continues:
                break
        if expect_binding:
            names.extend(pattern_names(item))
            expect_binding = False
        elif _is_punct(item, ','):
            expect_binding = True
        previous = item
        index += 1
    return names


# Words whose parenthesized head is not a parameter list
_STATEMENT_WORDS = {'if', 'for', 'while', 'switch', 'with'}
_DECLARATION_WORDS = {'var', 'let', 'const'}


def _sibling_lists(items):
    yield items
    for item in items:
        if isinstance(item, Tree):
            yield from _sibling_lists(item.children)
        elif isinstance(item, Declaration) and item.body is not None:
            yield from _sibling_lists(item.body.children)


def local_bindings(items):
    """
    Collect every name the module declares itself, at any depth: variables,
    functions, classes, parameters and catch bindings.
    """
    names = set()
    for siblings in _sibling_lists(items):
        for index, item in enumerate(siblings):
            following = siblings[index + 1] if index + 1 < len(siblings) else None
            if isinstance(item, Declaration):
                if item.params is not None:
                    names.update(pattern_names(item.params))
            elif _is_ident(item, _DECLARATION_WORDS) and following is not None:
                names.update(pattern_names(following))
                names.update(trailing_declarator_names(siblings, index + 2))
            elif _is_ident(item, ('function', 'class')):
                rest = siblings[index + 1:index + 3]
                if rest and _is_punct(rest[0], '*'):
                    rest = rest[1:]
                if rest and _is_ident(rest[0]):
                    names.add(str(rest[0]))
            elif _is_punct(following, '=>'):
                names.update(pattern_names(item))
            elif _is_group(item, 'paren') and _is_group(following, 'brace') and \
                    not (index > 0 and _is_ident(siblings[index - 1], _STATEMENT_WORDS)):
                names.update(pattern_names(item))
    return names


def _opens_class_body(siblings, index):
    for item in reversed(siblings[:index]):
        if isinstance(item, Declaration):
            return item.opens_class
        if _is_ident(item, ('class',)):
            return True
        if _is_group(item, 'brace') or (isinstance(item, Token) and item.type in ('LBRACE', 'LPAR', 'LSQB')):
            return False
        if isinstance(item, Token) and item.type == 'PUNCT' and item in (';', '=', ',', ':', '=>', '?'):
            return False
    return False


def _reference_text(siblings, index, expression, group, class_body):
    """Replacement for the identifier at index, or None where it is not a reference."""
    name = str(siblings[index])
    previous = siblings[index - 1] if index > 0 else None
    following = siblings[index + 1] if index + 1 < len(siblings) else None
    after = siblings[index + 2] if index + 2 < len(siblings) else None

    if _is_punct(previous, '#'):
        return None
    # method or function name: `name(...) {`
    if _is_group(following, 'paren') and _is_group(after, 'brace'):
        return None
    if class_body:
        # member names; only field initializers are references
        if isinstance(previous, Token) and previous.type == 'PUNCT' and previous not in (';', '*'):
            return expression
        return None
    if group == 'brace' and isinstance(previous, Token) and \
            (previous.type == 'LBRACE' or _is_punct(previous, ',')):
        if _is_punct(following, ':'):
            return None
        if _is_punct(following, ',') or (isinstance(following, Token) and following.type == 'RBRACE'):
            return f"{name}: {expression}"
    return expression


_SUBSTITUTION = re.compile(r"(?<!\\)\$\{((?:[^{}`]|`(?:[^`\\]|\\[\s\S])*`|\{[^{}]*\})*)\}")
_NAME = re.compile(r"(?<![\w$.])(?:[^\W\d]|\$)[\w$]*")


def _template_edits(token, live):
    edits = []
    for substitution in _SUBSTITUTION.finditer(token):
        body = substitution.group(1)
        # nested literals and functions would need a real scan
        if any(marker in body for marker in ('"', "'", '`', '=>', 'function')):
            continue
        offset = token.start_pos + substitution.start(1)
        for name in _NAME.finditer(body):
            if name.group() in live:
                edits.append((offset + name.start(), offset + name.end(), live[name.group()]))
    return edits


def reference_edits(siblings, live, group=None, class_body=False):
    """
    Find the references to imported bindings in a list of items.

    Each one is rewritten to read the exporting module's current value, so an
    import sees assignments made after it was required. Returns
    (start, end, replacement) triples.
    """
    edits = []
    for index, item in enumerate(siblings):
        if isinstance(item, Declaration):
            if item.body is not None:
                edits.extend(reference_edits(item.body.children, live, 'brace', class_body=True))
        elif isinstance(item, Tree):
            opens_class = item.data == 'brace' and _opens_class_body(siblings, index)
            edits.extend(reference_edits(item.children, live, item.data, class_body=opens_class))
        elif not isinstance(item, Token):
            continue
        elif item.type == 'TEMPLATE':
            edits.extend(_template_edits(item, live))
        elif item.type == 'IDENT' and str(item) in live:
            text = _reference_text(siblings, index, live[str(item)], group, class_body)
            if text is not None:
                edits.append((item.start_pos, item.end_pos, text))
    return edits


# Text that takes the place of a prefix rewrite
_REPLACEMENTS = {
    'export_default_expr': 'exports["default"] =',
    'export_variable': 'var',
}


class ModuleTransformer(Transformer):
    """
    Transforms a parsed module into (dependencies, code).

    Import declarations become `require` calls hoisted into a prologue, in
    declaration order. Exports become getters on `exports`, defined before any
    dependency is required so a circular importer already sees them. Source
    text outside the rewritten spans is kept byte for byte.
    """

    def __init__(self, source_code):
        """
        Initialize the transformer.

        Args:
            source_code: The exact text that was parsed; rewrites are applied to it by offset.
        """
        super().__init__()
        self._source = source_code

    # --- Imports ---

    def import_bare(self, children):
        keyword, source = children
        return Declaration('import', keyword.start_pos, source.end_pos,
                           specifier=js_string_value(source))

    def import_from(self, children):
        keyword, bindings, _from, source = children
        return Declaration('import', keyword.start_pos, source.end_pos,
                           specifier=js_string_value(source), bindings=bindings)

    def import_clause(self, children):
        bindings = []
        for child in children:
            if isinstance(child, list):
                bindings.extend(child)
        return bindings

    def default_binding(self, children):
        return [('default', str(children[0]))]

    def namespace_binding(self, children):
        return [('*', str(children[-1]))]

    def named_bindings(self, children):
        return [child for child in children if isinstance(child, tuple)]

    def import_specifier(self, children):
        names = [str(c) for c in children if isinstance(c, Token) and c.type in ('IDENT', 'DEFAULT')]
        return (names[0], names[-1])

    # --- Exports ---

    def export_default_expr(self, children):
        keyword, default = children[0], children[1]
        group = next((c for c in children if isinstance(c, Tree)), None)
        return Declaration('export_default_expr', keyword.start_pos, default.end_pos,
                           bindings=[('default', None)], statement=False,
                           params=group if _is_group(group, 'paren') else None,
                           body=group if _is_group(group, 'brace') else None,
                           opens_class=any(isinstance(c, Token) and c.type == 'EXTENDS' for c in children))

    def export_default_named(self, children):
        keyword, default = children[0], children[1]
        name = [c for c in children if isinstance(c, Token) and c.type == 'IDENT'][-1]
        return Declaration('export_local', keyword.start_pos, default.end_pos,
                           bindings=[('default', str(name))], statement=False,
                           opens_class=any(isinstance(c, Token) and c.type == 'CLASS' for c in children))

    def export_function(self, children):
        keyword = children[0]
        name = [c for c in children if isinstance(c, Token) and c.type == 'IDENT'][-1]
        return Declaration('export_local', keyword.start_pos, keyword.end_pos,
                           bindings=[(str(name), str(name))], statement=False)

    def export_class(self, children):
        declaration = self.export_function(children)
        declaration.opens_class = True
        return declaration

    def export_variable(self, children):
        keyword, kind, binding = children
        names = pattern_names(binding)
        # `export const x` is emitted as `var x`; across a cycle it reads as undefined
        return Declaration('export_variable', keyword.start_pos, kind.end_pos,
                           bindings=[(name, name) for name in names], statement=False)

    def export_list(self, children):
        specifiers = [child for child in children if isinstance(child, tuple)]
        return specifiers, children[-1].end_pos

    def export_specifier(self, children):
        names = [str(c) for c in children if isinstance(c, Token)]
        return (names[0], names[-1])

    def export_names(self, children):
        keyword, (specifiers, end) = children
        return Declaration('export_names', keyword.start_pos, end,
                           bindings=[(exported, local) for local, exported in specifiers])

    def export_from(self, children):
        keyword, (specifiers, _end), _from, source = children
        return Declaration('export_from', keyword.start_pos, source.end_pos,
                           specifier=js_string_value(source),
                           bindings=[(exported, imported) for imported, exported in specifiers])

    def export_all(self, children):
        keyword, source = children[0], children[-1]
        return Declaration('export_all', keyword.start_pos, source.end_pos,
                           specifier=js_string_value(source))

    def export_namespace(self, children):
        keyword, source = children[0], children[-1]
        name = [c for c in children if isinstance(c, Token) and c.type == 'IDENT'][-1]
        return Declaration('export_namespace', keyword.start_pos, source.end_pos,
                           specifier=js_string_value(source), bindings=[(str(name), '*')])

    # --- Module ---

    def start(self, items):
        """Resolve declarator lists and semicolons, then emit the rewritten module."""
        declarations = []
        for index, item in enumerate(items):
            if not isinstance(item, Declaration):
                continue
            if item.kind == 'export_variable':
                item.bindings.extend((name, name) for name in trailing_declarator_names(items, index + 1))
            if item.statement and index + 1 < len(items) and _is_punct(items[index + 1], ';'):
                item.end = items[index + 1].end_pos
            declarations.append(item)

        if not declarations:
            return TranspileResult([], self._source)
        dependencies, prologue, live = self._prologue(declarations, local_bindings(items))
        edits = reference_edits(items, live) if live else []
        return TranspileResult(dependencies, prologue + "\n" + self._body(declarations, edits))

    def _prologue(self, declarations, local_names):
        """
        Build the lines that run before the module body.

        Returns the dependency specifiers, the prologue text, and a map from
        each imported name to the expression that reads it live. Names the
        module declares again somewhere are left out of the map and keep
        reading the value copied here.
        """
        dependencies = []
        dep_vars = {}
        views = {}
        statements = []
        live = {}

        for decl in declarations:
            if decl.specifier is None:
                continue
            if decl.specifier not in dep_vars:
                dep_vars[decl.specifier] = f"__dep{len(dependencies)}"
                dependencies.append(decl.specifier)
                statements.append(f"var {dep_vars[decl.specifier]} = require({js_string(decl.specifier)});")
            dep = dep_vars[decl.specifier]

            if decl.kind == 'import' and decl.bindings:
                declarators = []
                for imported, local in decl.bindings:
                    if imported == '*':
                        declarators.append(f"{local} = {dep}")
                        continue
                    if imported == 'default':
                        if dep not in views:
                            # CommonJS modules are their own default export
                            views[dep] = dep.replace('__dep', '__mod')
                            statements.append(
                                f'var {views[dep]} = {dep} && {dep}.__esModule ? {dep} : {{ "default": {dep} }};'
                            )
                        expression = f'{views[dep]}["default"]'
                    else:
                        expression = f"{dep}[{js_string(imported)}]"
                    declarators.append(f"{local} = {expression}")
                    if local not in local_names:
                        live[local] = expression
                statements.append("var " + ", ".join(declarators) + ";")
            elif decl.kind == 'export_all':
                statements.append(
                    f"Object.keys({dep}).forEach(function (key) {{ "
                    f'if (key === "default" || key === "__esModule" || '
                    f"Object.prototype.hasOwnProperty.call(exports, key)) return; "
                    f"Object.defineProperty(exports, key, {{ enumerable: true, "
                    f"get: function () {{ return {dep}[key]; }} }}); }});"
                )

        getters = []
        exported = set()
        for decl in declarations:
            if decl.kind == 'import':
                continue
            for name, source in decl.bindings:
                if name in exported:
                    raise ValueError(f"Duplicate export '{name}'")
                exported.add(name)
                if decl.kind in ('export_from', 'export_namespace'):
                    dep = dep_vars[decl.specifier]
                    expression = dep if source == '*' else f"{dep}[{js_string(source)}]"
                elif source is None:
                    # exports["default"] is assigned by the rewritten body
                    continue
                else:
                    expression = live.get(source, source)
                getters.append(
                    f"Object.defineProperty(exports, {js_string(name)}, "
                    f"{{ enumerable: true, get: function () {{ return {expression}; }} }});"
                )

        lines = ['"use strict";']
        if any(decl.kind != 'import' for decl in declarations):
            lines.append('Object.defineProperty(exports, "__esModule", { value: true });')
        return dependencies, "\n".join(lines + getters + statements), live

    def _body(self, declarations, edits):
        """Apply the declaration rewrites and reference edits to the source, keeping line breaks."""
        replacements = list(edits)
        for decl in declarations:
            removed = self._source[decl.start:decl.end]
            replacements.append((decl.start, decl.end,
                                 _REPLACEMENTS.get(decl.kind, '') + "\n" * removed.count("\n")))

        parts = []
        position = 0
        for start, end, text in sorted(replacements):
            parts.append(self._source[position:start])
            parts.append(text)
            position = end
        parts.append(self._source[position:])
        return "".join(parts)
