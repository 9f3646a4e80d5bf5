"""
Cardman signals - public event API.

Emitted signals:
- client_registered: Emitted by RegistrationIssuer.register()
- visit_confirmed: Emitted by CardLedger.confirm_visit()
- bonus_granted: Emitted by CardLedger.confirm_visit() on milestone visits
- client_updated: Emitted by CardLedger after redemptions and overrides
- client_deleted: Emitted by CardLedger.delete()
"""

from django.dispatch import Signal

client_registered = Signal()  # sender=CardLedger|RegistrationIssuer, record=ClientRecord
visit_confirmed = Signal()  # sender, record=ClientRecord, visit=VisitRecord
bonus_granted = Signal()  # sender, record=ClientRecord, bonus_discount=int
client_updated = Signal()  # sender, record=ClientRecord, action=str
client_deleted = Signal()  # sender, client_id=str
