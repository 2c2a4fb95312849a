"""Site Auditor: accessibility, performance and brand-compliance scanning service."""
