"""
Bike inventory.

- Bikes are listed newest first
- Price and stock quantity can never go negative
- Every add/update/delete is recorded to the audit trail
"""
