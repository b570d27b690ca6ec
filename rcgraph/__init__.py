from rcgraph.errors import RcGraphError, BorrowConflict, BorrowError, BorrowMutError, UseAfterDrop, CycleError
from rcgraph.config import Config, get_config, configure, configured
from rcgraph.ref_cell import RefCell, Ref, RefMut, BorrowState
from rcgraph.rc import Rc, Weak, RcBox, Drop
from rcgraph.node import Node, ParentLink, create_node, attach_child, detach_child, resolve_parent
from rcgraph.version import version as __version__
