"""
Feature modules for the Guide data layer.

Each module is self-contained with its own:
- interfaces.py: Protocol definitions for the module's collaborators
- models.py: Pydantic models for rows and observable state
- repository.py: Supabase queries and row mapping
- service.py: Behaviour and state
- exceptions.py: Module-specific exceptions

Modules communicate through interfaces, not concrete implementations.
"""
