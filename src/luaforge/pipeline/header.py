'''
Header / body splitter

The header is everything before the first line that starts a root-level
action (a command, event or thread registration, or a function
definition). It is kept verbatim by the caller and never becomes nodes.
'''

from typing import List, NamedTuple, Optional

from ..graph.catalog import get_catalog

__all__ = ['SplitSource', 'split_source', 'extract_header', 'is_action_line']

FUNCTION_PREFIXES = ('function ', 'local function ')


class SplitSource(NamedTuple):
    header: str
    body: str
    body_line: int      # line number of the first body line


def is_action_line(line: str, root_callees: Optional[List[str]] = None) -> bool:
    '''True if `line` starts a root-level action'''
    stripped = line.strip()
    if stripped.startswith('--'):
        return False

    if stripped.startswith(FUNCTION_PREFIXES):
        return True

    if root_callees is None:
        root_callees = get_catalog().root_callees()

    return any(stripped.startswith(callee + '(') for callee in root_callees)


def split_source(source: str) -> SplitSource:
    '''Split `source` into header and body at the first action line'''
    lines = source.splitlines(keepends = True)
    root_callees = get_catalog().root_callees()
    in_comment = False

    for index, line in enumerate(lines):
        stripped = line.strip()

        # lines inside a --[[ ]] comment never start the body
        if in_comment:
            in_comment = ']]' not in stripped
            continue

        if stripped.startswith('--[['):
            in_comment = ']]' not in stripped[4:]
            continue

        if is_action_line(stripped, root_callees):
            return SplitSource(''.join(lines[:index]), ''.join(lines[index:]), index + 1)

    return SplitSource(source, '', len(lines) + 1)


def extract_header(source: str) -> str:
    return split_source(source).header
