"""Pattern definitions, one module per artifact kind.

Import :data:`agentlint.analysis.patterns.registry.REGISTRY` for the
assembled catalog.
"""
