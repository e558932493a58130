'''Graph - editor node model, catalog, and the AST <-> graph converters'''

from .model import *
from .catalog import *
from .emitters import *
from .converter import *
from .generator import *

__all__ = [
    # Model
    'EdgeHandle',
    'FLOW_IN',
    'normalize_handle',
    'Position',
    'GraphNode',
    'GraphEdge',
    'Graph',

    # Catalog
    'FIELD_TYPES',
    'FieldSpec',
    'CatalogEntry',
    'CatalogMatch',
    'NodeCatalog',
    'CATALOG_PATH',
    'get_catalog',
    'callee_text',

    # Emitters
    'Emission',
    'EMITTERS',
    'emitter',
    'emit',

    # Converters
    'ASTToGraphConverter',
    'convert',
    'GraphToLuaGenerator',
    'generate',
    'count_unclosed_blocks',
    'missing_closers',
    'ERROR_COMMENT',
]
