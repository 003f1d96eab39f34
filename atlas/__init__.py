# Atlas board: home-renovation task tracking, local state, cross-context sync
#
# Components:
#   schema.py   - Data model (Task, Project, Event, Document, TaskStatus)
#   storage.py  - Key/value storage region (SQLite file or in-memory)
#   seed.py     - Demo entity set used when storage is empty
#   store.py    - Entity collections and their persistence contract
#   indexer.py  - id and normalized-title lookups over the tasks
#   sync.py     - Change notification across contexts (SyncBus, watcher)
#   resolver.py - Resolve a task by id, title or fuzzy name
#   page.py     - Headless page surface and typed role bindings
#   render.py   - Card and dialog markup (Jinja2)
#   forms.py    - Create/edit form validation
#   modal.py    - Dialog lifecycle
#   board.py    - Kanban rendering, filters, drag/drop state machine
#   calendar_view.py - Month calendar: navigation, project filter, day cells
#   app.py      - Composition root and entry points
#   config.py   - YAML configuration
