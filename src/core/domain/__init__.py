"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2).
- El dominio no conoce DNS, HTTP ni CLI: solo proyectos, versiones y el
  formato de nombres que los transporta.
"""
