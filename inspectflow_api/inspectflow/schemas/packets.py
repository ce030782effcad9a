from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from inspectflow.schemas.gauges import GaugeUseRecord


class ConnectionVariant(str, Enum):
    """Which end of the connection is being inspected."""
    PIN = "PIN"
    BOX = "BOX"


class RowResult(str, Enum):
    """Operator disposition of a dimension row. UNSET is stored as an empty string."""
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
    UNSET = ""


class PacketMeta(BaseModel):
    """Order-creation-time side data merged into the packet header."""
    order_id: str = Field(..., alias="orderId")
    part_number: Optional[str] = Field(None, alias="partNumber")
    required_thread: Optional[str] = Field(None, alias="requiredThread")
    ndt_type: Optional[str] = Field(None, alias="ndtType")
    blueprint_url: Optional[str] = Field(None, alias="blueprintUrl")

    class Config:
        populate_by_name = True


class HeaderBlock(BaseModel):
    """Report header fields typed in by the operator."""
    company: str = ""
    customer: str = ""
    drawing: str = ""
    part: str = ""
    heat: str = ""
    work_order: str = Field("", alias="workOrder")
    gauge_doc: str = Field("", alias="gaugeDoc")
    description: str = ""

    class Config:
        populate_by_name = True


class VisualChecks(BaseModel):
    threads: str = ""
    shoulder: str = ""
    surface: str = ""
    notes: str = ""


class DimensionRow(BaseModel):
    """
    One inspected piece. Measurement fields hold the raw text exactly as typed,
    so invalid entries survive for re-editing.
    """
    serial: str = ""
    l1: str = ""
    lead: str = ""
    taper_a: str = Field("", alias="taperA")
    taper_b: str = Field("", alias="taperB")
    taper_c: str = Field("", alias="taperC")
    taper_avg: str = Field("", alias="taperAvg")
    thread_height: str = Field("", alias="threadHeight")
    od: str = ""
    id: str = ""
    standoff: str = ""
    l4: str = ""
    seal_face_minus_l1: str = Field("", alias="sealFaceMinusL1")
    overall_length: str = Field("", alias="overallLength")
    remarks: str = ""
    result: RowResult = RowResult.UNSET

    class Config:
        populate_by_name = True


class ReportSignatures(BaseModel):
    operator_name: str = Field("", alias="operatorName")
    inspector_name: str = Field("", alias="inspectorName")
    operator_signed_at: Optional[datetime] = Field(None, alias="operatorSignedAt")
    inspector_signed_at: Optional[datetime] = Field(None, alias="inspectorSignedAt")

    class Config:
        populate_by_name = True


class InspectionReport(BaseModel):
    """The 8-RD inspection report captured against a packet."""
    variant: ConnectionVariant = ConnectionVariant.PIN
    header: HeaderBlock = Field(default_factory=HeaderBlock)
    visual: VisualChecks = Field(default_factory=VisualChecks)
    dimensions: List[DimensionRow] = Field(default_factory=list)
    signatures: ReportSignatures = Field(default_factory=ReportSignatures)


class Packet(BaseModel):
    """Checklist, SOP references and report data for one order's inspection."""
    order_id: str = Field(..., alias="orderId")
    sop_links: List[str] = Field(default_factory=list, alias="sopLinks")
    checklist: List[str] = Field(default_factory=list)
    meta: PacketMeta
    report: InspectionReport = Field(default_factory=InspectionReport)
    gauge_uses: Dict[str, GaugeUseRecord] = Field(default_factory=dict, alias="gaugeUses")

    class Config:
        populate_by_name = True


class OpenPacketRequest(BaseModel):
    order_id: str = Field("", alias="orderId")

    class Config:
        populate_by_name = True


class SignRequest(BaseModel):
    """Sign the report as the acting role; the name is optional."""
    name: Optional[str] = Field(None, description="Printed name of the signer")


class FieldEvaluationRead(BaseModel):
    raw: str
    parsed: Optional[Decimal] = None
    is_partial: bool = False
    is_valid: bool = True
    out_of_tolerance: bool = False


class RowEvaluationRead(BaseModel):
    serial: str
    fields: Dict[str, FieldEvaluationRead]
    out_of_tolerance_keys: List[str]
    invalid_keys: List[str]
    suggested_result: RowResult


class ReportEvaluationRead(BaseModel):
    order_id: str
    rows: List[RowEvaluationRead]
    out_of_tolerance_count: int
    invalid_count: int
