"""Audit implementations run by the audit pipeline."""

from auditor.services.audits.accessibility import AccessibilityAudit, AxeEngine
from auditor.services.audits.base import (
    IN_PAGE_ORDER,
    LIGHTHOUSE_KINDS,
    AuditKind,
    AuditOptions,
    AuditRun,
    AuditState,
    BaseAudit,
    InvalidAuditTransition,
)
from auditor.services.audits.brand_color import BrandColorAudit, analyze_brand_colors
from auditor.services.audits.dynamic_content import DynamicContentAudit
from auditor.services.audits.lighthouse import LighthouseRunner, extract_category_payloads

__all__ = [
    "IN_PAGE_ORDER",
    "LIGHTHOUSE_KINDS",
    "AccessibilityAudit",
    "AuditKind",
    "AuditOptions",
    "AuditRun",
    "AuditState",
    "AxeEngine",
    "BaseAudit",
    "BrandColorAudit",
    "DynamicContentAudit",
    "InvalidAuditTransition",
    "LighthouseRunner",
    "analyze_brand_colors",
    "extract_category_payloads",
]
