"""
Notekeeper Backend — API Routes Package
========================================

Route Inventory:
    - notes.py:   GET/POST        /api/notes
                  GET/PUT/DELETE  /api/notes/{id}
    - health.py:  GET             /health

Routes stay thin: pull data from the request, call NoteService, return the
result. Status mapping for failures lives in main.register_exception_handlers.
"""
