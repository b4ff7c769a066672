"""Request context for policy evaluation.

Structure:
    tree.py       - TreeValue shape + to_tree structural conversion
    request.py    - ActionRequest model + builder
"""

from grc_policy.context.request import ActionRequest, build_action_request
from grc_policy.context.tree import TreeValue, is_array, is_object, to_tree

__all__ = [
    # Request
    "ActionRequest",
    "build_action_request",
    # Tree values
    "TreeValue",
    "is_array",
    "is_object",
    "to_tree",
]
