"""
Card and dialog markup.

Templates are Jinja2 with autoescaping on; titles and notes come straight
from user input.
"""
from jinja2 import DictLoader, Environment, select_autoescape

from .schema import STATUS_LABELS, TaskStatus

TEMPLATES = {
    "card.html": """\
<div class="task-card priority-{{ task.priority.value }}" draggable="true" data-task-id="{{ task.id }}">
  <div class="task-title">{{ task.title }}</div>
  <div class="task-meta">
    <span class="task-project">{{ project_name }}</span>
    {%- if task.due_date %}<span class="task-due">{{ task.due_date }}</span>{% endif %}
  </div>
  {%- if task.labels %}
  <div class="task-labels">{% for label in task.labels %}<span class="task-label">{{ label }}</span>{% endfor %}</div>
  {%- endif %}
</div>""",

    "task_detail.html": """\
<div class="task-detail-modal" data-task-id="{{ task.id }}">
  <h3>{{ task.title }}</h3>
  <div class="task-detail-info">
    <div class="detail-row"><strong>Project:</strong> <span>{{ project_name }}</span></div>
    <div class="detail-row"><strong>Status:</strong> <span>{{ status_label }}</span></div>
    <div class="detail-row"><strong>Priority:</strong> <span>{{ task.priority.value }}</span></div>
    {%- if task.due_date %}
    <div class="detail-row"><strong>Due:</strong> <span>{{ task.due_date }}</span></div>
    {%- endif %}
    {%- if task.estimate is not none %}
    <div class="detail-row"><strong>Estimate:</strong> <span>{{ task.estimate }} h</span></div>
    {%- endif %}
    {%- if task.labels %}
    <div class="detail-row"><strong>Labels:</strong> <span>{{ task.labels | join(", ") }}</span></div>
    {%- endif %}
    {%- if dependencies %}
    <div class="detail-row"><strong>Depends on:</strong>
      {%- for dep_id, dep in dependencies %}
      <span class="task-dependency">{% if dep %}{{ dep.title }}{% else %}Missing task {{ dep_id }}{% endif %}</span>
      {%- endfor %}
    </div>
    {%- endif %}
    {%- if task.description %}
    <p class="task-description">{{ task.description }}</p>
    {%- endif %}
  </div>
  <div class="form-actions">
    <button class="btn-secondary" data-action="close">Close</button>
    <button class="btn-secondary" data-action="edit">Edit</button>
    <button class="btn-secondary" data-action="delete">Delete</button>
    <button class="btn-primary" data-action="move">Move…</button>
  </div>
</div>""",

    "placeholder.html": """\
<div class="task-detail-modal placeholder">
  <h3>{{ query or "Untitled" }}</h3>
  <p>This appears to be a template item not yet created.</p>
  {%- if candidates %}
  <p>Several tasks match this name:</p>
  <ul>{% for task in candidates %}<li data-task-id="{{ task.id }}">{{ task.title }}</li>{% endfor %}</ul>
  {%- endif %}
  <div class="form-actions">
    <button class="btn-secondary" data-action="close">Close</button>
    <button class="btn-primary" data-action="create">Create it</button>
  </div>
</div>""",

    "task_form.html": """\
<form id="{{ form_id }}" class="task-form">
  <div class="form-group">
    <label for="task-title">Task Title *</label>
    <input type="text" id="task-title" name="title" value="{{ values.title or "" }}" required>
    {%- if errors.title %}<div class="field-error">{{ errors.title }}</div>{% endif %}
  </div>
  <div class="form-group">
    <label for="task-project">Project *</label>
    <select id="task-project" name="project">
      {%- for project in projects %}
      <option value="{{ project.id }}"{% if project.id == values.project %} selected{% endif %}>{{ project.name }}</option>
      {%- endfor %}
    </select>
  </div>
  <div class="form-group">
    <label for="task-priority">Priority *</label>
    <select id="task-priority" name="priority">
      {%- for value in ("high", "medium", "low") %}
      <option value="{{ value }}"{% if value == values.priority %} selected{% endif %}>{{ value | capitalize }} Priority</option>
      {%- endfor %}
    </select>
    {%- if errors.priority %}<div class="field-error">{{ errors.priority }}</div>{% endif %}
  </div>
  <div class="form-group">
    <label for="task-due">Due Date</label>
    <input type="text" id="task-due" name="due_date" value="{{ values.due_date or "" }}">
  </div>
  <div class="form-group">
    <label for="task-estimate">Estimate (hours)</label>
    <input type="number" id="task-estimate" name="estimate" min="0" value="{{ values.estimate if values.estimate is not none else "" }}">
    {%- if errors.estimate %}<div class="field-error">{{ errors.estimate }}</div>{% endif %}
  </div>
  <div class="form-group">
    <label for="task-labels">Labels (comma-separated)</label>
    <input type="text" id="task-labels" name="labels" value="{{ values.labels or "" }}">
  </div>
  <div class="form-group">
    <label for="task-description">Description</label>
    <textarea id="task-description" name="description" rows="3">{{ values.description or "" }}</textarea>
  </div>
  <div class="form-actions">
    <button type="button" class="btn-secondary" data-action="close">Cancel</button>
    <button type="submit" class="btn-primary">{{ submit_label }}</button>
  </div>
</form>""",

    "project_form.html": """\
<form id="new-project-form" class="task-form">
  <div class="form-group">
    <label for="project-name">Project Name *</label>
    <input type="text" id="project-name" name="name" value="{{ values.name or "" }}" required>
    {%- if errors.name %}<div class="field-error">{{ errors.name }}</div>{% endif %}
  </div>
  <div class="form-group">
    <label for="project-description">Description</label>
    <textarea id="project-description" name="description" rows="3">{{ values.description or "" }}</textarea>
  </div>
  <div class="form-group">
    <label for="project-budget">Budget Allocation *</label>
    <input type="number" id="project-budget" name="budget" value="{{ values.budget or "" }}" required>
    {%- if errors.budget %}<div class="field-error">{{ errors.budget }}</div>{% endif %}
  </div>
  <div class="form-group">
    <label for="project-timeline">Estimated Timeline</label>
    <input type="text" id="project-timeline" name="timeline" value="{{ values.timeline or "" }}">
  </div>
  <div class="form-group">
    <label for="project-priority">Priority Level *</label>
    <select id="project-priority" name="priority">
      {%- for value in ("high", "medium", "low") %}
      <option value="{{ value }}"{% if value == (values.priority or "medium") %} selected{% endif %}>{{ value | capitalize }} Priority</option>
      {%- endfor %}
    </select>
  </div>
  <div class="form-actions">
    <button type="button" class="btn-secondary" data-action="close">Cancel</button>
    <button type="submit" class="btn-primary">Create Project</button>
  </div>
</form>""",

    "move_form.html": """\
<form id="move-task-form" class="task-form" data-task-id="{{ task.id }}">
  <div class="form-group">
    <label for="move-status">New Status</label>
    <select id="move-status" name="status">
      {%- for status, label in statuses %}
      <option value="{{ status.value }}"{% if status.value == current %} selected{% endif %}>{{ label }}</option>
      {%- endfor %}
    </select>
  </div>
  <div class="form-actions">
    <button type="button" class="btn-secondary" data-action="close">Cancel</button>
    <button type="submit" class="btn-primary">Move</button>
  </div>
</form>""",

    "confirm.html": """\
<div class="confirm-dialog">
  <p>{{ message }}</p>
  <div class="form-actions">
    <button type="button" class="btn-secondary" data-action="cancel">Cancel</button>
    <button type="button" class="btn-danger" data-action="confirm">{{ confirm_label }}</button>
  </div>
</div>""",

    "event_detail.html": """\
<div class="task-detail-modal">
  <h3>{{ event.title }}</h3>
  <div class="task-detail-info">
    <div class="detail-row"><strong>Date:</strong> <span>{{ event.date }}</span></div>
    <div class="detail-row"><strong>Project:</strong> <span>{{ project_name }}</span></div>
    <div class="detail-row"><strong>Duration:</strong> <span>{% if event.duration %}{{ event.duration }} min{% else %}All day{% endif %}</span></div>
    {%- if event.notes %}
    <div class="detail-row"><strong>Notes:</strong> <span>{{ event.notes }}</span></div>
    {%- endif %}
  </div>
  <div class="form-actions">
    <button class="btn-secondary" data-action="close">Close</button>
  </div>
</div>""",

    "events_for_date.html": """\
{%- for event, project_name in events %}
<div class="event-item" data-event-id="{{ event.id }}">
  <div class="event-title"><strong>{{ event.title }}</strong></div>
  <div class="event-meta">{{ project_name }} • {% if event.duration %}{{ event.duration }} min{% else %}All day{% endif %}</div>
  {%- if event.notes %}<div class="event-notes">{{ event.notes }}</div>{% endif %}
</div>
{%- endfor %}
<div class="form-actions"><button class="btn-secondary" data-action="close">Close</button></div>""",

    "event_form.html": """\
<form id="add-event-form" class="task-form">
  <div class="form-group">
    <label for="ev-title">Title *</label>
    <input type="text" id="ev-title" name="title" value="{{ values.title or "" }}" required>
    {%- if errors.title %}<div class="field-error">{{ errors.title }}</div>{% endif %}
  </div>
  <div class="form-group">
    <label for="ev-date">Date *</label>
    <input type="date" id="ev-date" name="date" value="{{ values.date or "" }}" required>
    {%- if errors.date %}<div class="field-error">{{ errors.date }}</div>{% endif %}
  </div>
  <div class="form-group">
    <label for="ev-project">Project *</label>
    <select id="ev-project" name="project">
      {%- for project in projects %}
      <option value="{{ project.id }}"{% if project.id == values.project %} selected{% endif %}>{{ project.name }}</option>
      {%- endfor %}
    </select>
  </div>
  <div class="form-group">
    <label for="ev-duration">Duration (minutes)</label>
    <input type="number" id="ev-duration" name="duration" min="0" value="{{ values.duration or "" }}">
    {%- if errors.duration %}<div class="field-error">{{ errors.duration }}</div>{% endif %}
  </div>
  <div class="form-group">
    <label for="ev-notes">Notes</label>
    <textarea id="ev-notes" name="notes" rows="3">{{ values.notes or "" }}</textarea>
  </div>
  <div class="form-actions">
    <button type="button" class="btn-secondary" data-action="close">Cancel</button>
    <button type="submit" class="btn-primary">Add Event</button>
  </div>
</form>""",

    "document_detail.html": """\
<div class="task-detail-modal">
  <h3>{{ doc.title }}</h3>
  <div class="task-detail-info">
    <div class="detail-row"><strong>Project:</strong> <span>{{ project_name }}</span></div>
    <div class="detail-row"><strong>Type:</strong> <span>{{ doc.type }}</span></div>
    <div class="detail-row"><strong>Date:</strong> <span>{{ doc.date }}</span></div>
    {%- if doc.size %}
    <div class="detail-row"><strong>Size:</strong> <span>{{ doc.size }}</span></div>
    {%- endif %}
  </div>
  <div class="document-preview">
    {%- if doc.type == "photos" %}Photo set preview ({{ doc.photos or 0 }} items){% else %}Preview not available.{% endif %}
  </div>
  <div class="form-actions">
    <button class="btn-secondary" data-action="close">Close</button>
  </div>
</div>""",

    "missing.html": """\
<div class="task-detail-modal placeholder">
  <p>{{ kind | capitalize }} {{ ref }} could not be found.</p>
  <div class="form-actions">
    <button class="btn-secondary" data-action="close">Close</button>
  </div>
</div>""",
}

env = Environment(
    loader=DictLoader(TEMPLATES),
    autoescape=select_autoescape(default=True, default_for_string=True),
    trim_blocks=False,
)


def render(template_name: str, **context) -> str:
    return env.get_template(template_name).render(**context)


def status_label(status) -> str:
    """Column label for a status; off-board values are shown verbatim."""
    parsed = TaskStatus.parse(status)
    return STATUS_LABELS[parsed] if parsed else str(status)
