"""
Real HTTP integration clients.

These clients talk to external systems via HTTP:
- tenant workflow endpoints (verification and inspection flows)

Important:
- Keep the forwarder as the ONLY place where upstream flow calls are made.
- The forwarder is selected and configured in src/api/main.py only.
"""
