"""
Annotation engines: the tools that do the actual linguistic work
(tokenizers, taggers, parsers), behind a common interface
"""
