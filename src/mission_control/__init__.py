"""Decision-making core for multi-agent task management.

The package is split the same way the decisions flow:

- ``state_machine``: the only authority on which status changes are legal.
- ``coordinator``: decomposition, dependency analysis and agent delegation.
- ``router``: classification of raw requests and their disposition.

Everything under those three packages is pure and works on snapshots passed
in by the caller. Storage, timers and network calls live in the thin shell
modules (``contracts``, ``scheduler``, ``controllers``, ``main``) and in the
optional Tier-2 CLI client.
"""

__version__ = "0.4.0"
