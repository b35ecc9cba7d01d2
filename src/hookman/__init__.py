"""hookman - trigger rule compiler for webhook hook definitions.

Compiles expressions such as ``"header.X-Event" == "push" && "payload.ref" ~= "^refs/heads/"``
into rule trees that can be stored in a hooks file and evaluated per request.
"""

__version__ = "0.1.0"

from hookman.core.rules import parse_arguments, parse_rule

__all__ = ["parse_rule", "parse_arguments", "__version__"]
