'''Node Catalog - recognized runtime API calls and structural node kinds'''

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..lua.ast import *
from ..lua.formatter import LuaFormatter

__all__ = [
    'FIELD_TYPES',
    'FieldSpec',
    'CatalogEntry',
    'CatalogMatch',
    'NodeCatalog',
    'CATALOG_PATH',
    'get_catalog',
    'callee_text',
]

FIELD_TYPES = ('string', 'expr', 'rest', 'params')

CATALOG_PATH = Path(__file__).parent / 'catalog.yaml'


@dataclass
class FieldSpec:
    '''Argument -> field extraction rule'''
    name: str
    arg: int
    type: str
    default: Any = None
    optional: bool = False


@dataclass
class CatalogEntry:
    '''One node kind

    Call kinds carry `callees` and `fields`; structural kinds only carry
    defaults.
    '''
    kind: str
    label: str
    callees: List[str] = field(default_factory = list)
    fields: List[FieldSpec] = field(default_factory = list)
    root: bool = False
    variant_field: Optional[str] = None
    variants: Dict[str, str] = field(default_factory = dict)
    defaults: Dict[str, Any] = field(default_factory = dict)

    @property
    def is_call(self) -> bool:
        return bool(self.callees)

    @property
    def body_field(self) -> Optional[FieldSpec]:
        '''The function-valued argument forming the node's children'''
        for spec in self.fields:
            if spec.type == 'params':
                return spec

        return None

    def default(self, name: str) -> Any:
        return self.defaults.get(name)

    def callee_for(self, variant: Optional[str]) -> str:
        '''Callee spelling to emit for a variant value'''
        for callee, value in self.variants.items():
            if value == variant:
                return callee

        return self.callees[0]


@dataclass
class CatalogMatch:
    entry: CatalogEntry
    fields: Dict[str, Any]
    body: Optional[List[Statement]] = None

    @property
    def kind(self) -> str:
        return self.entry.kind

    @property
    def is_block(self) -> bool:
        return self.body is not None


def callee_text(call: FunctionCall | MethodCall) -> str:
    '''Callee of a call as matched against the catalog, e.g. exports['qb-core']:DrawText'''
    if isinstance(call, MethodCall):
        text = f'{LuaFormatter.format_prefix(call.object, 0)}:{call.method}'
    else:
        text = LuaFormatter.format_prefix(call.callee, 0)

    return text.replace('"', "'")


class NodeCatalog:
    '''Database of node kinds, loaded from YAML'''

    def __init__(self):
        self.entries: Dict[str, CatalogEntry] = {}
        self._by_callee: Dict[str, CatalogEntry] = {}

    def load_yaml(self, path: Path):
        '''Load catalog entries from YAML file'''
        with open(path, 'r', encoding = 'utf-8') as f:
            data = yaml.safe_load(f)

        if not data:
            return

        self._load_calls(data.get('calls', {}))
        self._load_structural(data.get('structural', {}))

    def _load_calls(self, calls_data: Optional[Dict]):
        if not calls_data:
            return

        for kind, entry_data in calls_data.items():
            entry = self._parse_call_entry(kind, entry_data)
            self._add(entry)

            for callee in entry.callees:
                if callee in self._by_callee:
                    raise ValueError(f"{kind}: callee '{callee}' already used by {self._by_callee[callee].kind}")

                self._by_callee[callee] = entry

    def _load_structural(self, structural_data: Optional[Dict]):
        if not structural_data:
            return

        for kind, entry_data in structural_data.items():
            entry_data = entry_data or {}
            self._add(CatalogEntry(
                kind = kind,
                label = entry_data.get('label', kind),
                defaults = dict(entry_data.get('defaults') or {}),
            ))

    def _add(self, entry: CatalogEntry):
        if entry.kind in self.entries:
            raise ValueError(f"Duplicate node kind '{entry.kind}'")

        self.entries[entry.kind] = entry

    def _parse_call_entry(self, kind: str, data: Dict) -> CatalogEntry:
        callees = data.get('callees') or []
        if isinstance(callees, str):
            callees = [callees]

        if not callees:
            raise ValueError(f'{kind}: no callees')

        fields = [self._parse_field(f) for f in data.get('fields') or []]
        self._validate_fields(fields, kind)

        variants = {str(k): str(v) for k, v in (data.get('variants') or {}).items()}
        variant_field = data.get('variant_field')
        if variants and not variant_field:
            raise ValueError(f'{kind}: variants without variant_field')

        defaults = {f.name: f.default for f in fields if f.default is not None}
        if variant_field and data.get('variant_default') is not None:
            defaults[variant_field] = data['variant_default']

        return CatalogEntry(
            kind = kind,
            label = data.get('label', kind),
            callees = [str(c) for c in callees],
            fields = fields,
            root = bool(data.get('root', False)),
            variant_field = variant_field,
            variants = variants,
            defaults = defaults,
        )

    @classmethod
    def _parse_field(cls, data: Any) -> FieldSpec:
        if not isinstance(data, dict):
            raise ValueError(f"Field '{data}' must be a mapping")

        name = data.get('name')
        if not name:
            raise ValueError(f'Field {data} missing name')

        field_type = data.get('type')
        if field_type not in FIELD_TYPES:
            raise ValueError(f"Field '{name}' has unknown type {field_type!r}")

        arg = data.get('arg')
        if not isinstance(arg, int) or arg < 0:
            raise ValueError(f"Field '{name}' needs a non-negative argument index")

        return FieldSpec(
            name = name,
            arg = arg,
            type = field_type,
            default = data.get('default'),
            optional = bool(data.get('optional', False)) or field_type == 'rest',
        )

    @classmethod
    def _validate_fields(cls, fields: List[FieldSpec], context: str):
        '''Validate field list - distinct arguments, optional and rest fields trailing'''
        seen_optional = False
        args = set()

        for i, spec in enumerate(sorted(fields, key = lambda f: f.arg)):
            if spec.arg in args:
                raise ValueError(f'{context}: argument {spec.arg} mapped twice')

            args.add(spec.arg)

            if spec.type == 'rest' and i != len(fields) - 1:
                raise ValueError(f"{context}: rest field '{spec.name}' must be last")

            if spec.optional:
                seen_optional = True
            elif seen_optional:
                raise ValueError(f"{context}: required field '{spec.name}' follows an optional one")

        if sum(1 for f in fields if f.type == 'params') > 1:
            raise ValueError(f'{context}: more than one params field')

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, kind: str) -> Optional[CatalogEntry]:
        return self.entries.get(kind)

    def kinds(self) -> List[str]:
        return list(self.entries)

    def call_entries(self) -> List[CatalogEntry]:
        return [e for e in self.entries.values() if e.is_call]

    def root_callees(self) -> List[str]:
        '''Callees of root entries, qualified names first'''
        callees = [c for e in self.entries.values() if e.root for c in e.callees]
        return sorted(callees, key = lambda c: (-(c.count('.') + c.count(':')), callees.index(c)))

    def default(self, kind: str, name: str) -> Any:
        entry = self.entries.get(kind)
        if entry is None:
            return None

        return entry.default(name)

    def match_call(self, call: FunctionCall | MethodCall) -> Optional[CatalogMatch]:
        '''Match a call against the call entries, None if nothing fits'''
        callee = callee_text(call)
        entry = self._by_callee.get(callee)
        if entry is None:
            return None

        extracted = self._extract(entry, call.args)
        if extracted is None:
            return None

        values, body = extracted
        if entry.variant_field:
            values[entry.variant_field] = entry.variants.get(callee, entry.default(entry.variant_field))

        return CatalogMatch(entry, values, body)

    @classmethod
    def _extract(cls, entry: CatalogEntry, args: List[Expression]) -> Optional[Tuple[Dict[str, Any], Optional[List[Statement]]]]:
        has_rest = any(f.type == 'rest' for f in entry.fields)
        arity = max((f.arg + 1 for f in entry.fields), default = 0)
        if not has_rest and len(args) > arity:
            return None

        values: Dict[str, Any] = {}
        body = None

        for spec in entry.fields:
            if spec.type == 'rest':
                remaining = args[spec.arg:]
                if remaining:
                    values[spec.name] = ', '.join(LuaFormatter.format_source(a) for a in remaining)
                continue

            if spec.arg >= len(args):
                if spec.optional:
                    continue

                return None

            arg = args[spec.arg]

            match spec.type:
                case 'string':
                    if not isinstance(arg, StringLiteral):
                        return None

                    values[spec.name] = arg.value

                case 'expr':
                    values[spec.name] = LuaFormatter.format_source(arg)

                case 'params':
                    if not isinstance(arg, AnonymousFunction):
                        return None

                    values[spec.name] = ', '.join(arg.params)
                    body = arg.body

        return values, body


_catalog: Optional[NodeCatalog] = None


def get_catalog() -> NodeCatalog:
    '''Get the packaged catalog, loading it on first use'''
    global _catalog

    if _catalog is None:
        catalog = NodeCatalog()
        catalog.load_yaml(CATALOG_PATH)
        _catalog = catalog

    return _catalog
