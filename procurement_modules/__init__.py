"""
Procurement Modules.

Thin orchestration layers over the Procurement Kernel.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Configuration schemas
- Services and stores (persistence seams)

Modules:
- Requisitions: draft editing, recycle queue, approval lifecycle
"""
