"""Service layer — accounts, documents, autosave and the interactive flows.

Services receive a :class:`~mindmapctl.infrastructure.workspace.Workspace`
at construction time. The flow-level services (access, editor) return
:class:`~mindmapctl.services.result.ServiceResult`; the storage-level
services return plain values and let storage errors propagate.
"""
