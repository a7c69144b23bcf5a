"""
Services Layer
Read-only, presentation-focused queries used by the routes.

Services should:
- Not modify data
- Aggregate across models for display
- Be stateless
"""
