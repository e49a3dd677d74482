"""
Rule Post - Rules Enquiry Publication Service

Backs the multi-team class-rule enquiry workflow: teams submit enquiries,
responses and comments; the Rules Committee adjudicates; and a
working-day calendar governs when each post is published and when each
participation window opens or closes.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
