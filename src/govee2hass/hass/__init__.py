"""Home Assistant side of the bridge.

Discovery descriptors, the capability-to-entity mapping rules, one module
per entity family, and the sync driver that publishes them.
"""
