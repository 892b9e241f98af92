"""Icon Studio color engine.

Headless core behind the icon editor: color parsing, CSS-filter emulation,
filter inference, format-preserving markup rewriting and the per-icon
variant model.

Subpackages:
 - ``iconstudio.engine``: pure functions, no I/O
 - ``iconstudio.services``: event bus, logging capture, persistence, variant
   store and the editor session
 - ``iconstudio.app``: per-session wiring (``create_session``)
"""

__version__ = "0.4.0"

__all__ = ["__version__"]
