"""
Session coordination core for an LLM gateway.

Tracks which sessions are open, which requests are pending, streaming,
completed or failed, and which response chunks have arrived. Providers,
transport and response streaming live elsewhere; this package only keeps the
state consistent and persisted.

Subpackages:
- models: identifiers, client messages, stream chunks, domain events
- aggregates: Session and Request state machines
- storage: repository and unit-of-work contracts, Redis implementation
- use_cases: transactional application procedures
- core: settings and exceptions
- observability: structured logging
"""

__version__ = "0.1.0"
