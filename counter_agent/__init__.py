"""Counter Agent - paid job orchestration for a ledger counter contract.

Accepts increment jobs over HTTP, waits for payment confirmation from the
payment service, then increments the shared counter contract once per job.
"""

__version__ = "0.1.0"
