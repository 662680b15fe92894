"""
Course Library domain package.

- models: Stored entities, public DTOs, paging types.
- repository: In-memory persistence stand-in with filter/sort/page.
- mappings: Sort mappings and field shapes of the DTOs.
- pipeline: Ordered stages turning a resource query into a 200 or 304.
- seed: Demo data.
"""
