"""
Concrete notification channel adapters.

Keep import side-effect free; the factory imports what it needs.
"""
