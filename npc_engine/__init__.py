"""
NPC configuration engine -- schema-driven editing core.

Package layout:
    registry        Variant catalog (closed enum, field schemas, sections)
    templates       Default record template for every variant
    factory         Draft creation, duplication, id allocation
    field_resolver  Dotted-path reads and writes on draft records
    validator       Multi-pass validator and batch validation
    variant_rules   Business rules dispatched per variant
    form_builder    Headless dynamic form logic and edit commands
    wizard          Four-step editing workflow
    collection      Per-scope entity list and persistence orchestration
    persistence     Persistence Service protocol and reference backends
    notifications   Notification collaborator protocol
    models/         Pydantic models for the schema layer
"""
