"""
Buyer leads captured from the "interested in a bike" form.
"""
