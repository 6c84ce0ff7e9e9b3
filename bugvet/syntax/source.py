"""A single analysed file: its syntax tree plus resolved type information."""

from dataclasses import dataclass, field

from .nodes import File, Node
from .typeinfo import TypeInfo


@dataclass
class SourceFile:
    """Input unit handed to the rule engine.

    ``info`` must be fully resolved before any rule runs on ``root``.
    """

    path: str
    root: Node
    info: TypeInfo = field(default_factory=TypeInfo)
    package: str = ""

    def __post_init__(self) -> None:
        if not self.package and isinstance(self.root, File):
            self.package = self.root.name
