"""
Document AI Assistant — API Routes Package
===========================================

Route Inventory:
    - folders.py:        /api/folders        (tree, search, stats, move, CRUD)
    - documents.py:      /api/documents      (CRUD, upload, classify)
    - notes.py:          /api/notes          (CRUD)
    - audio.py:          /api/audio          (upload, CRUD, transcribe, summary)
    - todos.py:          /api/todos          (CRUD, bulk, detect, check-deadlines)
    - notifications.py:  /api/notifications  (inbox, read state)
    - chat.py:           /api/chat, /api/chats
    - files.py:          /api/files/{key}    (owner-scoped downloads)
    - health.py:         /health

Routes stay thin: they parse the request, resolve the owner from the bearer
token and call a service. Business rules live in docassist.services.
"""
