"""
Liquid Glass — Core
Filter graph, assembler, reactive scheduler and the glue around them.
"""
