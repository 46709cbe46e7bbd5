"""Command serializer for the fingerprint scanner.

Converts operation requests into protocol strings. The newline
terminator is added by the transport.
"""
from __future__ import annotations

from typing import Optional

from ..models import OperationKind

CMD_ENROLL = "ENROLL"
CMD_VERIFY = "VERIFY"
CMD_DELETE = "DELETE"


class CommandSerializer:
    """Serializer for scanner commands.

    Protocol format:
    - ENROLL:<id>
    - VERIFY
    - DELETE:<id>
    """

    @staticmethod
    def enroll(template_id: int) -> str:
        return f"{CMD_ENROLL}:{template_id}"

    @staticmethod
    def verify() -> str:
        return CMD_VERIFY

    @staticmethod
    def delete(template_id: int) -> str:
        return f"{CMD_DELETE}:{template_id}"

    @staticmethod
    def serialize(kind: OperationKind, template_id: Optional[int] = None) -> str:
        """Serialize an operation into a command line.

        Args:
            kind: Operation to encode
            template_id: Required for ENROLL and DELETE

        Raises:
            ValueError: if template_id is missing for ENROLL/DELETE
        """
        if kind is OperationKind.VERIFY:
            return CommandSerializer.verify()
        if template_id is None:
            raise ValueError(f"{kind.value} requires a template id")
        if kind is OperationKind.ENROLL:
            return CommandSerializer.enroll(template_id)
        return CommandSerializer.delete(template_id)
