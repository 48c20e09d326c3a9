"""
Notekeeper Backend — Services Layer
====================================

Service Inventory:
    - NoteService: validation, identity/timestamp rules and CRUD over notes

Services never see HTTP objects; they take a database session and plain
values and raise application exceptions.
"""
