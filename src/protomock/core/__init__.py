"""
Core protomock components: the member model, the type parser and the
analysis passes (overloads, erasure, storage selection, grouping, validation)
that the synthesizer builds on.
"""
