"""
Course Library Service package.

Serves authors and their courses with client-driven sorting, field
shaping and conditional (ETag) revalidation:
- Sort expressions are translated to storage fields through a property
  mapping registry; shape requests are checked against each DTO's
  declared field set before any query runs.
- Every cacheable GET response is fingerprinted and answered with 304 when
  the client echoes the current validator.

Structure:
- app.main: FastAPI app, routes, and wiring of all components.
- app.mapping: Sort/field expression parsing, property mappings, shaping.
- app.caching: Cache directives, validators, conditional decisions, stores.
- app.domain: Entities, DTOs, repository and the response pipeline.
"""
