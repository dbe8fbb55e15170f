"""
Conversion passes.

- builder: document graph construction
- registry: namespace declarations and mutability
- resolver / exports / synthesizer: reference rewriting and module syntax
- templates: template relocation and markup containers
- converter: the orchestrating ProjectConverter
"""
