"""
Pipeline entry points: the runner that wires the generation components
together and the persistent cost ledger.
"""
