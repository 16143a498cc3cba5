"""
Rental Modules.

Thin orchestration layers over the rental kernel.  Each module contains:
- Domain models (result and draft value objects)
- Pure calculations
- A service that owns the transaction boundary

Modules:
- rent: Payment ledger bookkeeping (records, late fees, monthly schedule)
- advance_deposit: Pre-paid advance months and their application to rent
- termination: Early lease termination (countdown and immediate leave)
"""
