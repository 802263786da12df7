"""Execution support for the pipeline daemon.

This package contains the building blocks used while running a pipeline:

- **config**: Config resolution (file / http(s) URI or inline doc -> PipelineDefinition)
- **fs**: Working-directory replication (reflink-aware recursive copy)
- **process**: Subprocess execution (command -> captured stdout)
- **transport**: Progress delivery over server-sent events
"""
