"""
Report signing: operator and inspector signatures plus inspector verification of gauge use.

The two signatures are independent; either may come first and re-signing
replaces the earlier timestamp. A role can only ever write its own signature.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from inspectflow.core.errors import GaugeNotSelectedError
from inspectflow.schemas.common import Role
from inspectflow.schemas.packets import Packet, ReportSignatures
from inspectflow.services.gauges import verify_use

logger = logging.getLogger(__name__)


class SignatureState(str, Enum):
    UNSIGNED = "UNSIGNED"
    OPERATOR_SIGNED = "OPERATOR_SIGNED"
    INSPECTOR_SIGNED = "INSPECTOR_SIGNED"
    COMPLETE = "COMPLETE"


# PUBLIC_INTERFACE
def sign(
    signatures: ReportSignatures,
    actor_role: Role,
    now: datetime,
    name: Optional[str] = None,
) -> ReportSignatures:
    """
    Sign as `actor_role`, overwriting any earlier signature by the same role.

    Parameters:
        signatures: current signature block
        actor_role: the role signing; only its own fields are written
        now: signature timestamp
        name: printed name; the stored name is kept when None
    Returns:
        New ReportSignatures with the role's timestamp set.
    """
    if actor_role == Role.OPERATOR:
        update = {"operator_signed_at": now}
        if name is not None:
            update["operator_name"] = name
    else:
        update = {"inspector_signed_at": now}
        if name is not None:
            update["inspector_name"] = name
    resigned = getattr(signatures, next(iter(update))) is not None
    logger.info("Report %s by %s", "re-signed" if resigned else "signed", actor_role.value)
    return signatures.model_copy(update=update)


def signature_state(signatures: ReportSignatures) -> SignatureState:
    operator = signatures.operator_signed_at is not None
    inspector = signatures.inspector_signed_at is not None
    if operator and inspector:
        return SignatureState.COMPLETE
    if operator:
        return SignatureState.OPERATOR_SIGNED
    if inspector:
        return SignatureState.INSPECTOR_SIGNED
    return SignatureState.UNSIGNED


def is_complete(signatures: ReportSignatures) -> bool:
    return signature_state(signatures) == SignatureState.COMPLETE


def is_print_eligible(signatures: ReportSignatures) -> bool:
    # Printing is never blocked on missing signatures.
    return True


# PUBLIC_INTERFACE
def sign_packet(packet: Packet, actor_role: Role, now: datetime, name: Optional[str] = None) -> Packet:
    """Sign the packet's report as `actor_role`."""
    report = packet.report.model_copy(
        update={"signatures": sign(packet.report.signatures, actor_role, now, name)}
    )
    return packet.model_copy(update={"report": report})


# PUBLIC_INTERFACE
def verify_gauge_use(packet: Packet, gauge_id: str, actor_role: Role, now: datetime) -> Packet:
    """
    Inspector verification of a gauge recorded on the packet.

    Raises:
        GaugeNotSelectedError: the gauge has no use record on this packet.
        RoleNotPermittedError: actor is not an inspector.
    """
    record = packet.gauge_uses.get(gauge_id)
    if record is None:
        raise GaugeNotSelectedError(gauge_id)
    uses = dict(packet.gauge_uses)
    uses[gauge_id] = verify_use(record, actor_role, now)
    logger.info("Gauge %s verified on packet %s", gauge_id, packet.order_id)
    return packet.model_copy(update={"gauge_uses": uses})
