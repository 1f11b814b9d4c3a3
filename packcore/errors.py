"""
Error handling utilities for the minipack bundler.
"""
import re


class MinipackError(Exception):
    """Base exception for build errors with file location and hints."""
    def __init__(self, message, file_path=None, line_number=None, column=None, context=None, suggestion=None):
        self.message = message
        self.file_path = file_path
        self.line_number = line_number
        self.column = column
        self.context = context  # The offending line
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    def _format_error(self):
        """Format the error message with location, context and suggestion."""
        lines = ["\n❌ Build Error"]
        if self.file_path:
            lines.append(f" in {self.file_path}")
        if self.line_number:
            lines.append(f" at line {self.line_number}")
            if self.column:
                lines.append(f", column {self.column}")
        lines.append(":\n")

        lines.append(f"   {self.message}\n")

        if self.context:
            lines.append(f"   > {self.context}\n")

        if self.suggestion:
            lines.append(f"   💡 {self.suggestion}\n")

        return "".join(lines)

    def __str__(self):
        return self._format_error()


class ModuleReadError(MinipackError, OSError):
    """A module file is missing or cannot be read."""


class ModuleSyntaxError(MinipackError, SyntaxError):
    """The transpiler could not parse a module."""


class UnresolvedDependencyError(MinipackError, FileNotFoundError):
    """An import specifier does not resolve to a readable file."""
    def __init__(self, specifier, importer, resolved_path=None, suggestion=None):
        self.specifier = specifier
        self.importer = importer
        self.resolved_path = resolved_path
        if resolved_path:
            message = f"Cannot resolve '{specifier}' (looked for {resolved_path})"
        else:
            message = f"Cannot resolve '{specifier}'"
        super().__init__(message, file_path=importer, suggestion=suggestion)


class GraphError(MinipackError):
    """The module graph violates one of its invariants."""


class ConfigError(MinipackError):
    """The build configuration is unreadable or invalid."""


def get_line_context(source_code, line_number):
    """Extract the line of code from source by line number (1-based)."""
    if not source_code or line_number is None:
        return None
    source_lines = source_code.split('\n')
    if 0 < line_number <= len(source_lines):
        return source_lines[line_number - 1].strip()
    return None


def detect_common_error_patterns(source_code, error_msg=""):
    """Detect common mistakes and return helpful suggestions."""
    # TypeScript-only module syntax
    if re.search(r'^\s*(import|export)\s+type\b', source_code, re.M) or \
            re.search(r'^\s*export\s*=', source_code, re.M):
        return "TypeScript module syntax is not supported: compile to JavaScript first", "typescript_syntax"

    # Mixing CommonJS and ES module exports
    if re.search(r'\bmodule\.exports\b', source_code) and re.search(r'^\s*export\b', source_code, re.M):
        return "Don't mix 'module.exports' with 'export' declarations in one file", "mixed_module_systems"

    # Unterminated template literal
    if source_code.count('`') % 2:
        return "Unterminated template literal: check for a missing '`'", "unterminated_template"

    # Unterminated string on a single line
    if "Unexpected character" in error_msg or "No terminal matches" in error_msg:
        for line in source_code.split('\n'):
            stripped = re.sub(r'\\.', '', line)
            if stripped.count('"') % 2 or stripped.count("'") % 2:
                return "Unterminated string literal: strings can't span lines", "unterminated_string"

    pairs = [('{', '}', "braces"), ('(', ')', "parentheses"), ('[', ']', "brackets")]
    for open_char, close_char, label in pairs:
        opened = source_code.count(open_char)
        closed = source_code.count(close_char)
        if opened != closed:
            return f"Unmatched {label}: found {opened} '{open_char}' but {closed} '{close_char}'", f"unmatched_{label}"

    # Export forms the transpiler does not know
    if re.search(r'^\s*export\s+(?!default\b|const\b|let\b|var\b|function\b|async\b|class\b|\{|\*)', source_code, re.M):
        return "Use 'export const', 'export function', 'export class', 'export default' or 'export { ... }'", "unknown_export"

    return None, None
