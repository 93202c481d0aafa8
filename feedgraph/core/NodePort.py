from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .Types import PortKind, ConnectionCheck, PREVIOUS_LINK, OUTPUT_LINK

# To avoid circular imports only for typing
if TYPE_CHECKING:
    from .Node import Node


@dataclass(frozen=True)
class NodePort:
    """
    A named connection point on a node.

    Statement ports hold the head of a chain of nodes whose chain category
    matches ``check``. Value ports hold a single value-producing node.
    Either kind holds at most one direct child.
    """
    port_name: str
    kind: PortKind
    check: Optional[ConnectionCheck] = None

    def isStatementPort(self) -> bool:
        return self.kind == PortKind.STATEMENT

    def isValuePort(self) -> bool:
        return self.kind == PortKind.VALUE

    @property
    def link_name(self) -> str:
        """Name of the link on the child side of an edge bound to this port."""
        return PREVIOUS_LINK if self.isStatementPort() else OUTPUT_LINK

    def accepts(self, node_class: type) -> bool:
        if self.isStatementPort():
            if node_class.CHAIN is None:
                return False
            # An unchecked statement port takes any chainable node
            return self.check is None or node_class.CHAIN == self.check
        return node_class.OUTPUT

    def check_accepts(self, node: 'Node'):
        if not self.accepts(type(node)):
            if self.isStatementPort():
                wanted = self.check.value if self.check else "statement"
                raise ValueError(
                    f"Port '{self.port_name}' only accepts '{wanted}' chains, got '{node.type.value}' node '{node.id}'"
                )
            raise ValueError(
                f"Port '{self.port_name}' only accepts value-producing nodes, got '{node.type.value}' node '{node.id}'"
            )


def StatementPort(port_name: str, check: Optional[ConnectionCheck] = None) -> NodePort:
    return NodePort(port_name, PortKind.STATEMENT, check)


def ValuePort(port_name: str) -> NodePort:
    return NodePort(port_name, PortKind.VALUE)
