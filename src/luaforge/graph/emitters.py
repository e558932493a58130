'''
Node emitters - the Graph -> Lua direction of the catalog

One pure function per node kind. Each returns an Emission: the node's own
lines and, for block kinds, the closing line its children are nested
before. Missing fields fall back to the catalog defaults.
'''

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..lua.formatter import quote_string
from .catalog import get_catalog
from .model import GraphNode

__all__ = [
    'Emission',
    'EMITTERS',
    'emitter',
    'emit',
]


@dataclass
class Emission:
    '''Lines for one node

    `closer` is set for block kinds; the node's children are emitted one
    level deeper, between `lines` and `closer`. `branching` marks kinds
    whose children are split by edge handle.
    '''
    lines: List[str] = field(default_factory = list)
    closer: Optional[str] = None
    branching: bool = False

    @property
    def is_block(self) -> bool:
        return self.closer is not None


EmitterFunc = Callable[[GraphNode], Emission]

EMITTERS: Dict[str, EmitterFunc] = {}


def emitter(*kinds: str):
    '''Register the decorated function as the emitter for `kinds`'''
    def decorator(func: EmitterFunc) -> EmitterFunc:
        for kind in kinds:
            EMITTERS[kind] = func

        return func

    return decorator


def emit(node: GraphNode) -> Emission:
    return EMITTERS[node.kind](node)


# ----------------------------------------------------------------------
# Field helpers
# ----------------------------------------------------------------------

def _field(node: GraphNode, name: str, fallback: Any = '') -> Any:
    value = node.data.get(name)
    if value is None:
        value = get_catalog().default(node.kind, name)

    if value is None:
        value = fallback

    return value


def _has(node: GraphNode, name: str) -> bool:
    return node.data.get(name) is not None


def _string(node: GraphNode, name: str) -> str:
    return quote_string(str(_field(node, name)), "'")


def _expr(node: GraphNode, name: str, fallback: str = 'nil') -> str:
    value = _field(node, name, fallback)
    if isinstance(value, bool):
        return 'true' if value else 'false'

    text = str(value).strip()
    return text or fallback


def _flag(node: GraphNode, name: str) -> bool:
    value = _field(node, name, False)
    if isinstance(value, str):
        return value.strip().lower() == 'true'

    return bool(value)


def _call(callee: str, *args: str) -> str:
    return f'{callee}({", ".join(args)})'


def _open_call(callee: str, args: List[str], params: str) -> str:
    '''Head of a call whose last argument so far is a function spanning the block'''
    return f'{callee}({"".join(a + ", " for a in args)}function({params})'


def _close_call(*args: str) -> str:
    return f'end{"".join(", " + a for a in args)})'


# ----------------------------------------------------------------------
# Roots and handlers
# ----------------------------------------------------------------------

@emitter('event-start')
def emit_command(node: GraphNode) -> Emission:
    head = _open_call('RegisterCommand', [_string(node, 'commandName')], _field(node, 'parameters'))
    trailing = [_expr(node, 'restricted')] if _has(node, 'restricted') else []
    return Emission([head], _close_call(*trailing))


@emitter('register-net')
def emit_net_event(node: GraphNode) -> Emission:
    # Without a handler the event is only registered
    if not _has(node, 'parameters'):
        return Emission([_call('RegisterNetEvent', _string(node, 'eventName'))])

    head = _open_call('RegisterNetEvent', [_string(node, 'eventName')], _field(node, 'parameters'))
    return Emission([head], _close_call())


@emitter('add-event-handler')
def emit_event_handler(node: GraphNode) -> Emission:
    head = _open_call('AddEventHandler', [_string(node, 'eventName')], _field(node, 'parameters'))
    return Emission([head], _close_call())


@emitter('thread-create')
def emit_thread(node: GraphNode) -> Emission:
    return Emission([_open_call('CreateThread', [], _field(node, 'parameters'))], _close_call())


@emitter('qb-command')
def emit_qb_command(node: GraphNode) -> Emission:
    args = [
        _string(node, 'commandName'),
        _string(node, 'help'),
        _expr(node, 'arguments', '{}'),
        _expr(node, 'restricted', 'false'),
    ]
    trailing = [_expr(node, 'permission')] if _has(node, 'permission') else []
    return Emission([_open_call('QBCore.Commands.Add', args, _field(node, 'parameters'))], _close_call(*trailing))


@emitter('qb-create-callback')
def emit_create_callback(node: GraphNode) -> Emission:
    head = _open_call('QBCore.Functions.CreateCallback', [_string(node, 'callbackName')], _field(node, 'parameters'))
    return Emission([head], _close_call())


@emitter('qb-trigger-callback')
def emit_trigger_callback(node: GraphNode) -> Emission:
    head = _open_call('QBCore.Functions.TriggerCallback', [_string(node, 'callbackName')], _field(node, 'parameters'))
    arguments = str(_field(node, 'arguments')).strip()
    return Emission([head], _close_call(arguments) if arguments else _close_call())


@emitter('register-key-mapping')
def emit_key_mapping(node: GraphNode) -> Emission:
    return Emission([_call(
        'RegisterKeyMapping',
        _string(node, 'commandName'),
        _string(node, 'description'),
        _string(node, 'mapper'),
        _string(node, 'key'),
    )])


# ----------------------------------------------------------------------
# Actions
# ----------------------------------------------------------------------

@emitter('logic-print')
def emit_print(node: GraphNode) -> Emission:
    return Emission([_call('print', _string(node, 'message'))])


def _notify(callee: str, node: GraphNode) -> Emission:
    args = [_string(node, 'message')]
    if _has(node, 'notifyType') or _has(node, 'length'):
        args.append(_string(node, 'notifyType'))

    if _has(node, 'length'):
        args.append(_expr(node, 'length'))

    return Emission([_call(callee, *args)])


@emitter('qb-notify')
def emit_qb_notify(node: GraphNode) -> Emission:
    return _notify('QBCore.Functions.Notify', node)


@emitter('esx-notify')
def emit_esx_notify(node: GraphNode) -> Emission:
    return _notify('ESX.ShowNotification', node)


@emitter('event-trigger')
def emit_event_trigger(node: GraphNode) -> Emission:
    callee = get_catalog().get('event-trigger').callee_for(_field(node, 'eventType'))
    args = [_string(node, 'eventName')]

    arguments = str(_field(node, 'arguments')).strip()
    if arguments:
        args.append(arguments)

    return Emission([_call(callee, *args)])


@emitter('wait')
def emit_wait(node: GraphNode) -> Emission:
    return Emission([_call('Wait', _expr(node, 'duration', '0'))])


@emitter('do-screen-fade-in')
def emit_fade_in(node: GraphNode) -> Emission:
    return Emission([_call('DoScreenFadeIn', _expr(node, 'duration', '1000'))])


@emitter('do-screen-fade-out')
def emit_fade_out(node: GraphNode) -> Emission:
    return Emission([_call('DoScreenFadeOut', _expr(node, 'duration', '1000'))])


@emitter('clear-ped-tasks')
def emit_clear_ped_tasks(node: GraphNode) -> Emission:
    return Emission([_call('ClearPedTasks', _expr(node, 'ped', 'PlayerPedId()'))])


@emitter('qb-drawtext-show')
def emit_drawtext_show(node: GraphNode) -> Emission:
    args = [_string(node, 'text')]
    if _has(node, 'position'):
        args.append(_string(node, 'position'))

    return Emission([_call("exports['qb-core']:DrawText", *args)])


@emitter('qb-drawtext-hide')
def emit_drawtext_hide(node: GraphNode) -> Emission:
    return Emission([_call("exports['qb-core']:HideText")])


@emitter('qb-drawtext-3d')
def emit_drawtext_3d(node: GraphNode) -> Emission:
    return Emission([_call(
        'QBCore.Functions.DrawText3D',
        _expr(node, 'x', '0.0'),
        _expr(node, 'y', '0.0'),
        _expr(node, 'z', '0.0'),
        _string(node, 'text'),
    )])


@emitter('qb-delete-vehicle')
def emit_delete_vehicle(node: GraphNode) -> Emission:
    return Emission([_call('QBCore.Functions.DeleteVehicle', _expr(node, 'vehicle', 'vehicle'))])


# ----------------------------------------------------------------------
# Structural kinds
# ----------------------------------------------------------------------

@emitter('function-def')
def emit_function(node: GraphNode) -> Emission:
    prefix = 'local function' if _flag(node, 'isLocal') else 'function'
    name = _expr(node, 'functionName', 'myFunction')
    return Emission([f'{prefix} {name}({_field(node, "parameters")})'], 'end')


@emitter('logic-if')
def emit_if(node: GraphNode) -> Emission:
    return Emission([f'if {_expr(node, "condition", "true")} then'], 'end', branching = True)


@emitter('logic-loop')
def emit_loop(node: GraphNode) -> Emission:
    condition = _expr(node, 'condition', 'true')
    if _field(node, 'loopType') == 'repeat':
        return Emission(['repeat'], f'until {condition}')

    return Emission([f'while {condition} do'], 'end')


@emitter('logic-for')
def emit_for(node: GraphNode) -> Emission:
    bounds = [_expr(node, 'startVal', '1'), _expr(node, 'endVal', '10')]
    if _has(node, 'step') and str(node.data['step']).strip():
        bounds.append(_expr(node, 'step'))

    return Emission([f'for {_expr(node, "loopVar", "i")} = {", ".join(bounds)} do'], 'end')


@emitter('logic-for-in')
def emit_for_in(node: GraphNode) -> Emission:
    variables = _expr(node, 'variables', 'k, v')
    return Emission([f'for {variables} in {_expr(node, "iterable")} do'], 'end')


@emitter('variable')
def emit_variable(node: GraphNode) -> Emission:
    name = _expr(node, 'varName', 'myVar')
    value = _expr(node, 'value')
    if _flag(node, 'isLocal'):
        return Emission([f'local {name} = {value}'])

    return Emission([f'{name} = {value}'])


@emitter('logic-return')
def emit_return(node: GraphNode) -> Emission:
    value = str(_field(node, 'returnValue')).strip()
    return Emission([f'return {value}' if value else 'return'])


@emitter('custom-code')
def emit_custom_code(node: GraphNode) -> Emission:
    # Nodes with code are emitted verbatim before dispatch
    return Emission([])
