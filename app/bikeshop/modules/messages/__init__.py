"""
Feedback and contact-us submissions.

Known fields get their own columns; anything else the form posted is kept
verbatim in the ``extra`` JSON column.
"""
