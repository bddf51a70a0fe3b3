"""CRM integration layer -- lead sources for reconciliation.

Provides the abstract LeadSource interface with one concrete implementation:
- CloseLeadClient: paginated lead fetch from the Close REST API

``lead_field`` reads configured (possibly custom) field keys from raw leads.
"""

from src.app.crm.adapter import LeadSource
from src.app.crm.close import CloseLeadClient
from src.app.crm.field_mapping import lead_field

__all__ = [
    "LeadSource",
    "CloseLeadClient",
    "lead_field",
]
