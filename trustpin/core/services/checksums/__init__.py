"""
Digests, signatures and the trust tier state machine.
"""
