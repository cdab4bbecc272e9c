from __future__ import annotations
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging

from fastapi import BackgroundTasks, FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from .config import configure_logging, get_settings, resolve_location
from .db import init_db
from .errors import DuplicateNoteError, NoteNotFoundError, SearchError
from .models import SearchQuery
from .services import (
    create_note,
    delete_note,
    get_note,
    import_note,
    random_note,
    run_tag_refresh,
    search_notes,
    tag_summary,
    update_note,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db()
    logger.info("hashnotes ready db=%s dev=%s", settings.db_path, settings.dev_mode)
    yield


app = FastAPI(title="Hashnotes", lifespan=lifespan)

# ---------- Schemas ----------
class NoteCreate(BaseModel):
    title: str = ""
    note: str
    favorite: bool = False
    archive: bool = False
    created_at: Optional[datetime] = None

class NoteEdit(BaseModel):
    title: Optional[str] = None
    note: Optional[str] = None
    favorite: Optional[bool] = None
    archive: Optional[bool] = None
    created_at: Optional[datetime] = None

class NoteImport(BaseModel):
    id: str
    title: str
    note: str
    archive: bool = False
    favorite: bool = False
    created_at: datetime
    modified_at: datetime

class NoteOut(BaseModel):
    id: str
    title: str
    note: str
    tags: list[str]
    archive: bool
    favorite: bool
    created_at: datetime
    modified_at: datetime

class TagOut(BaseModel):
    tag_name: str
    note_count: int

def _to_out(n) -> NoteOut:
    return NoteOut(
        id=n.id, title=n.title, note=n.note, tags=list(n.tags),
        archive=n.archive, favorite=n.favorite,
        created_at=n.created_at, modified_at=n.modified_at,
    )

# ---------- API ----------
@app.get("/health")
def health():
    settings = get_settings()
    return {"status": "OK", "dev_mode": settings.dev_mode, "time_location": settings.time_location}

@app.get("/api/notes", response_model=list[NoteOut])
def api_search_notes(
    q: Optional[str] = None,
    tag: Optional[str] = None,
    archived: Optional[str] = None,
    favorites: Optional[str] = None,
):
    query = SearchQuery.from_params(q=q, tag=tag, archived=archived, favorites=favorites)
    try:
        notes = search_notes(query)
    except SearchError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return [_to_out(n) for n in notes]

@app.get("/api/tags", response_model=list[TagOut])
def api_tags():
    return [TagOut(tag_name=t.tag_name, note_count=t.note_count) for t in tag_summary()]

@app.post("/api/notes", response_model=NoteOut, status_code=201)
def api_create_note(payload: NoteCreate):
    try:
        n = create_note(
            payload.title, payload.note,
            favorite=payload.favorite, archive=payload.archive, created_at=payload.created_at,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_out(n)

@app.get("/api/notes/random", response_model=Optional[NoteOut])
def api_random_note():
    n = random_note()
    return _to_out(n) if n else None

@app.post("/api/notes/refresh-tags", status_code=202)
def api_refresh_tags(background_tasks: BackgroundTasks):
    background_tasks.add_task(run_tag_refresh, get_settings().refresh_timeout)
    return {"status": "queued", "message": "Queued background task to update notes."}

@app.get("/api/notes/{note_id}", response_model=NoteOut)
def api_get_note(note_id: str):
    n = get_note(note_id)
    if not n:
        raise HTTPException(status_code=404, detail="Not found")
    return _to_out(n)

@app.put("/api/notes/{note_id}", response_model=NoteOut)
def api_update_note(note_id: str, payload: NoteEdit):
    try:
        n = update_note(
            note_id,
            title=payload.title,
            note=payload.note,
            archive=payload.archive,
            favorite=payload.favorite,
            created_at=payload.created_at,
        )
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_out(n)

@app.delete("/api/notes/{note_id}")
def api_delete_note(note_id: str):
    try:
        delete_note(note_id)
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    return {"ok": True}

@app.post("/api/import", response_model=NoteOut, status_code=201)
def api_import_note(payload: NoteImport):
    try:
        n = import_note(
            payload.id, payload.title, payload.note,
            archive=payload.archive, favorite=payload.favorite,
            created_at=payload.created_at, modified_at=payload.modified_at,
        )
    except DuplicateNoteError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_out(n)

@app.get("/api/time")
def api_time(tz: Optional[str] = Query(None, description="IANA time zone, e.g. Europe/Berlin")):
    # display zone is per request; nothing global changes
    try:
        loc = resolve_location(tz, get_settings().time_location)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"time_location": loc.key, "now": datetime.now(loc).isoformat()}

# ---------- Tiny UI ----------
_INDEX = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width,initial-scale=1"/>
  <title>Hashnotes</title>
  <style>
    body { font-family: system-ui, sans-serif; max-width: 56rem; margin: 1rem auto; padding: 0 1rem; }
    .pill { padding: 2px 8px; border-radius: 999px; font-size: 12px; border: 1px solid #cbd5e1; cursor: pointer; }
    .pill.active { background: #0b5cff; color: #fff; border-color: #0b5cff; }
    .note { border: 1px solid #e2e8f0; border-radius: 12px; padding: .5rem .75rem; margin: .5rem 0; }
    .meta { color: #64748b; font-size: 12px; }
  </style>
</head>
<body>
  <h1>Hashnotes</h1>
  <form id="search">
    <input id="q" name="q" placeholder="Search"/>
    <label><input type="checkbox" id="archived"/> archived</label>
    <label><input type="checkbox" id="favorites"/> favorites</label>
    <button>Search</button>
  </form>
  <div id="tags"></div>
  <div id="list"></div>
<script>
let activeTag = "";
const esc = s => String(s).replace(/[&<>"']/g, c => ({"&":"&amp;","<":"&lt;",">":"&gt;",'"':"&quot;","'":"&#39;"}[c]));

async function loadTags() {
  const tags = await (await fetch("/api/tags")).json();
  document.getElementById("tags").innerHTML = tags.map(t =>
    `<span class="pill ${t.tag_name === activeTag ? "active" : ""}" data-tag="${esc(t.tag_name)}">#${esc(t.tag_name)} ${t.note_count}</span>`
  ).join(" ");
}

async function loadNotes() {
  const p = new URLSearchParams();
  const q = document.getElementById("q").value.trim();
  if (q) p.set("q", q);
  if (activeTag) p.set("tag", activeTag);
  if (document.getElementById("archived").checked) p.set("archived", "on");
  if (document.getElementById("favorites").checked) p.set("favorites", "on");
  const notes = await (await fetch("/api/notes?" + p)).json();
  document.getElementById("list").innerHTML = notes.map(n => `
    <div class="note">
      <strong>${esc(n.title)}</strong> ${n.favorite ? "&#9733;" : ""} ${n.archive ? "(archived)" : ""}
      <div class="meta">${esc(n.id)} &middot; ${esc(n.modified_at)} &middot; ${n.tags.map(t => "#" + esc(t)).join(" ")}</div>
    </div>`).join("") || "<p class='meta'>No notes.</p>";
}

document.getElementById("search").addEventListener("submit", e => { e.preventDefault(); loadNotes(); });
document.getElementById("tags").addEventListener("click", e => {
  const t = e.target.dataset.tag;
  if (t === undefined) return;
  activeTag = activeTag === t ? "" : t;
  loadTags(); loadNotes();
});
loadTags(); loadNotes();
</script>
</body>
</html>
"""

@app.get("/", response_class=HTMLResponse)
def index():
    return _INDEX
