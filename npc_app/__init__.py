"""
NPC Editor -- application services around the configuration engine.

Package layout:
    services/   Application services (Qt event bus)
    paths.py    Data-directory resolution
    settings.py Editor settings
    main.py     Logging setup and composition root
"""
