from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone, tzinfo

from jinja2 import DictLoader, Environment

from .models import DashboardStats, PostSummary, TimelineEntry, TimelineRun
from .rendering import render_markdown
from .timeline import (
    agent_display,
    calculate_duration,
    format_date,
    format_timestamp,
    post_title,
    status_display,
    timeline_href,
    truncate_title,
)


DEFAULT_APP_NAME = "ContentOps"


@dataclass(frozen=True)
class NavItem:
    title: str
    href: str
    icon: str
    disabled: bool = False


SIDEBAR_ITEMS: tuple[NavItem, ...] = (
    NavItem(title="Dashboard", href="/dashboard", icon="📊"),
    NavItem(title="Generate", href="/generate", icon="✍️"),
    NavItem(title="Timeline", href="/timeline", icon="📜", disabled=True),
)

PIPELINE_STEPS = (
    ("01", "Research", "AI scours the web for relevant data", "🔍", "research"),
    ("02", "Write", "Expert writer agent crafts your content", "✍️", "writer"),
    ("03", "Fact-Check", "Verifies claims & adds citations", "✓", "factcheck"),
    ("04", "Polish", "Final touches for perfection", "✨", "polish"),
)

FEATURES = (
    (
        "🤖",
        "Multi-Agent Intelligence",
        "Four specialized AI agents work together, each focusing on what they do best: "
        "research, writing, fact-checking, and polishing.",
    ),
    (
        "⚡",
        "Lightning Fast",
        "Generate comprehensive, well-researched blog posts in minutes instead of hours. "
        "Scale your content production effortlessly.",
    ),
    (
        "🎯",
        "SEO Optimized",
        "Every article is crafted with SEO in mind, helping your content rank higher "
        "and reach more readers.",
    ),
    (
        "✅",
        "Fact-Checked & Cited",
        "Our fact-checker agent verifies claims and adds proper citations, so your "
        "content stays accurate and trustworthy.",
    ),
    (
        "🎨",
        "Your Voice, Amplified",
        "Customize tone, style, and format to match your brand. The agents adapt to "
        "your requirements.",
    ),
    (
        "📊",
        "Research-Backed",
        "Every article starts with web research, so your content is informed by the "
        "latest data and trends.",
    ),
)

AGENT_STATUS_CARDS = (
    ("Research", "🔍"),
    ("Writer", "✍️"),
    ("Fact-Check", "✓"),
    ("Polish", "✨"),
)

_BASE_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{% block title %}{{ app_name }}{% endblock %}</title>
  <link rel="preconnect" href="https://fonts.googleapis.com">
  <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
  <link
    href="https://fonts.googleapis.com/css2?family=Space+Grotesk:wght@400;500;700&display=swap"
    rel="stylesheet"
  >
  <link
    href="https://fonts.googleapis.com/css2?family=IBM+Plex+Mono:wght@400;500&display=swap"
    rel="stylesheet"
  >
  <style>
    :root {
      --bg: #020617;
      --panel: #0f172a;
      --panel-soft: #1e293b;
      --ink: #f8fafc;
      --muted: #94a3b8;
      --faint: #64748b;
      --line: #1e293b;
      --violet: #8b5cf6;
      --cyan: #06b6d4;
      --ok: #34d399;
      --warn: #fbbf24;
      --danger: #f87171;
    }
    * { box-sizing: border-box; }
    body {
      margin: 0;
      min-height: 100vh;
      font-family: "Space Grotesk", sans-serif;
      color: var(--ink);
      background: linear-gradient(180deg, #020617 0%, #0f172a 50%, #020617 100%);
    }
    a { color: inherit; }
    .brand { display: flex; align-items: center; gap: 10px; text-decoration: none; }
    .brand-mark {
      width: 32px; height: 32px; border-radius: 10px;
      background: linear-gradient(135deg, var(--violet), var(--cyan));
    }
    .brand-name { font-size: 1.2rem; font-weight: 700; }
    .topnav {
      position: fixed; inset: 0 0 auto 0; z-index: 50; height: 64px;
      display: flex; align-items: center; justify-content: space-between;
      padding: 0 32px; border-bottom: 1px solid var(--line);
      background: rgba(2, 6, 23, 0.8); backdrop-filter: blur(6px);
    }
    .btn {
      display: inline-block; border: none; border-radius: 12px; padding: 10px 18px;
      font-family: inherit; font-weight: 700; font-size: 0.95rem; cursor: pointer;
      text-decoration: none; transition: transform 120ms ease, opacity 120ms ease;
    }
    .btn:hover { transform: translateY(-1px); }
    .btn-primary { color: #fff; background: linear-gradient(90deg, #7c3aed, #0891b2); }
    .btn-outline { color: var(--muted); background: transparent; border: 1px solid #334155; }
    .btn-light { color: #0f172a; background: #fff; }
    .btn-lg { padding: 16px 28px; font-size: 1.1rem; }
    .card {
      background: rgba(15, 23, 42, 0.6); border: 1px solid var(--line);
      border-radius: 16px; padding: 20px;
    }
    .muted { color: var(--muted); }
    .faint { color: var(--faint); }
    .mono { font-family: "IBM Plex Mono", monospace; }
    .badge {
      display: inline-block; border-radius: 999px; padding: 3px 10px;
      font-size: 0.78rem; border: 1px solid #334155; background: var(--panel-soft);
      color: var(--muted);
    }
    .badge-ok { color: var(--ok); border-color: rgba(52, 211, 153, 0.3); }
    .badge-warn { color: var(--warn); border-color: rgba(251, 191, 36, 0.3); }
    .status-pending { color: var(--muted); }
    .status-running { color: #60a5fa; }
    .status-completed { color: #4ade80; border-color: rgba(74, 222, 128, 0.3); }
    .status-failed { color: var(--danger); }
    .status-retrying { color: #facc15; }
    .grid { display: grid; gap: 16px; }
    .grid-3 { grid-template-columns: repeat(3, 1fr); }
    .grid-4 { grid-template-columns: repeat(4, 1fr); }
    .error-card { background: rgba(127, 29, 29, 0.2); border-color: rgba(153, 27, 27, 0.5); }
    .error-text { color: var(--danger); }
    .markdown { color: #cbd5e1; line-height: 1.6; }
    .markdown h1 { font-size: 1.25rem; color: #fff; }
    .markdown h2 { font-size: 1.1rem; color: #e2e8f0; }
    .markdown h3 { font-size: 1rem; color: #cbd5e1; }
    .markdown strong { color: #fff; }
    .markdown blockquote {
      border-left: 4px solid var(--violet); margin: 12px 0; padding: 6px 14px;
      background: rgba(30, 41, 59, 0.3);
    }
    .markdown code {
      font-family: "IBM Plex Mono", monospace; background: var(--panel-soft);
      color: #22d3ee; padding: 2px 6px; border-radius: 6px; font-size: 0.85rem;
    }
    .markdown pre code { display: block; padding: 12px; overflow-x: auto; }
    .markdown hr { border: none; border-top: 1px solid #334155; }
    .markdown table { border-collapse: collapse; }
    .markdown th, .markdown td { border: 1px solid #334155; padding: 4px 8px; }
    @media (max-width: 780px) {
      .grid-3, .grid-4 { grid-template-columns: 1fr; }
    }
    {% block style %}{% endblock %}
  </style>
</head>
<body>
{% block body %}{% endblock %}
{% block script %}{% endblock %}
</body>
</html>
"""

_APP_TEMPLATE = """{% extends "base.html" %}
{% block style %}
    .sidebar {
      position: fixed; left: 0; top: 0; z-index: 40; width: 256px; height: 100vh;
      border-right: 1px solid var(--line); background: var(--panel);
    }
    .sidebar-head {
      height: 64px; display: flex; align-items: center; padding: 0 24px;
      border-bottom: 1px solid var(--line);
    }
    .sidebar nav { padding: 16px; }
    .sidebar .menu-label {
      font-size: 0.72rem; font-weight: 700; letter-spacing: 0.08em;
      text-transform: uppercase; color: var(--faint); padding: 0 12px;
    }
    .nav-item {
      display: flex; align-items: center; gap: 12px; padding: 10px 12px;
      margin-bottom: 4px; border-radius: 12px; color: var(--muted); text-decoration: none;
      border: 1px solid transparent;
    }
    .nav-item:hover { color: #fff; background: rgba(30, 41, 59, 0.5); }
    .nav-item.active {
      color: #fff; border-color: rgba(139, 92, 246, 0.2);
      background: linear-gradient(90deg, rgba(124, 58, 237, 0.2), rgba(8, 145, 178, 0.2));
    }
    .nav-icon {
      width: 32px; height: 32px; border-radius: 8px; display: flex;
      align-items: center; justify-content: center; background: rgba(30, 41, 59, 0.8);
    }
    .nav-dot {
      margin-left: auto; width: 6px; height: 6px; border-radius: 999px;
      background: linear-gradient(90deg, #a78bfa, #22d3ee);
    }
    .sidebar-foot { position: absolute; bottom: 0; left: 0; right: 0; padding: 16px; }
    .sidebar-foot a { color: var(--faint); font-size: 0.9rem; text-decoration: none; }
    .sidebar-foot a:hover { color: #a78bfa; }
    .content { padding-left: 256px; }
    .page { padding: 48px 32px; max-width: 1100px; }
    {% block page_style %}{% endblock %}
{% endblock %}
{% block body %}
  <aside class="sidebar">
    <div class="sidebar-head">
      <a class="brand" href="/"><span class="brand-mark"></span>
        <span class="brand-name">{{ app_name }}</span></a>
    </div>
    <nav>
      <p class="menu-label">Menu</p>
      {% for item in nav_items if not item.disabled %}
        {% set active = current_path == item.href or current_path.startswith(item.href) %}
        <a class="nav-item{% if active %} active{% endif %}" href="{{ item.href }}">
          <span class="nav-icon">{{ item.icon }}</span>
          <span>{{ item.title }}</span>
          {% if active %}<span class="nav-dot"></span>{% endif %}
        </a>
      {% endfor %}
    </nav>
    <div class="sidebar-foot"><a href="/">&larr; Back to Home</a></div>
  </aside>
  <div class="content">
    <main class="page">
    {% block content %}{% endblock %}
    </main>
  </div>
{% endblock %}
"""

_HOME_TEMPLATE = """{% extends "base.html" %}
{% block style %}
    .hero { padding: 128px 32px 80px; text-align: center; }
    .hero h1 { font-size: clamp(2.4rem, 6vw, 4.5rem); margin: 0 0 24px; line-height: 1.05; }
    .gradient-text {
      background: linear-gradient(90deg, #a78bfa, #22d3ee, #a78bfa);
      -webkit-background-clip: text; background-clip: text; color: transparent;
    }
    .hero p { max-width: 640px; margin: 0 auto 40px; font-size: 1.2rem; }
    .section { max-width: 1100px; margin: 0 auto; padding: 48px 32px; }
    .step-icon {
      width: 48px; height: 48px; border-radius: 12px; display: flex;
      align-items: center; justify-content: center; font-size: 1.4rem; margin-bottom: 14px;
    }
    .accent-research { background: linear-gradient(135deg, #3b82f6, #06b6d4); }
    .accent-writer { background: linear-gradient(135deg, #8b5cf6, #a855f7); }
    .accent-factcheck { background: linear-gradient(135deg, #10b981, #22c55e); }
    .accent-polish { background: linear-gradient(135deg, #f59e0b, #f97316); }
    .cta {
      text-align: center; padding: 48px;
      background: linear-gradient(90deg, rgba(124, 58, 237, 0.2), rgba(8, 145, 178, 0.2));
      border-color: rgba(139, 92, 246, 0.3);
    }
    footer {
      border-top: 1px solid var(--line); padding: 40px 32px; display: flex;
      justify-content: space-between; color: var(--muted);
    }
    footer nav a { margin-left: 20px; text-decoration: none; font-size: 0.9rem; }
{% endblock %}
{% block body %}
  <nav class="topnav">
    <a class="brand" href="/"><span class="brand-mark"></span>
      <span class="brand-name">{{ app_name }}</span></a>
    <a class="btn btn-outline" href="/generate">Get Started</a>
  </nav>

  <section class="hero">
    <span class="badge">✨ Powered by Multi-Agent AI</span>
    <h1>Generate Blog Posts<br><span class="gradient-text">10x Faster</span></h1>
    <p class="muted">
      Our multi-agent system researches, writes, fact-checks, and polishes your
      content, delivering publish-ready blog posts in minutes, not hours.
    </p>
    <a class="btn btn-primary btn-lg" href="/generate">Start Generating &rarr;</a>
    <a class="btn btn-outline btn-lg" href="/dashboard">View Dashboard</a>
  </section>

  <section class="section">
    <div class="grid grid-4">
      {% for step, title, desc, icon, accent in pipeline_steps %}
      <div class="card">
        <div class="step-icon accent-{{ accent }}">{{ icon }}</div>
        <div class="faint mono">STEP {{ step }}</div>
        <h3>{{ title }}</h3>
        <p class="muted">{{ desc }}</p>
      </div>
      {% endfor %}
    </div>
  </section>

  <section class="section">
    <h2 style="text-align: center;">Why Choose {{ app_name }}?</h2>
    <p class="muted" style="text-align: center;">
      Built for content creators, marketers, and businesses who need quality content at scale.
    </p>
    <div class="grid grid-3">
      {% for icon, title, description in features %}
      <div class="card">
        <div style="font-size: 2rem;">{{ icon }}</div>
        <h3>{{ title }}</h3>
        <p class="muted">{{ description }}</p>
      </div>
      {% endfor %}
    </div>
  </section>

  <section class="section">
    <div class="card cta">
      <h2>Ready to Transform Your Content?</h2>
      <p>Let the agents research, write, and check your next post.</p>
      <a class="btn btn-light btn-lg" href="/generate">Generate Your First Post &rarr;</a>
    </div>
  </section>

  <footer>
    <span>{{ app_name }} &copy; {{ year }}</span>
    <nav><a href="#">Privacy</a><a href="#">Terms</a><a href="#">Contact</a></nav>
  </footer>
{% endblock %}
"""

_GENERATE_TEMPLATE = """{% extends "app.html" %}
{% block title %}Generate &middot; {{ app_name }}{% endblock %}
{% block page_style %}
    label { display: block; margin: 0 0 8px; font-weight: 500; color: #cbd5e1; }
    input, textarea {
      width: 100%; padding: 12px 16px; margin-bottom: 20px; border-radius: 10px;
      border: 1px solid #334155; background: var(--panel-soft); color: #fff;
      font-family: inherit; font-size: 1rem;
    }
    textarea { resize: none; }
    .form-error {
      margin-bottom: 20px; padding: 12px 16px; border-radius: 10px;
      background: rgba(127, 29, 29, 0.25); border: 1px solid rgba(153, 27, 27, 0.5);
    }
{% endblock %}
{% block content %}
  <h1>Generate Your Blog Post</h1>
  <p class="muted">Enter a topic and let our agents create content for you.</p>

  <form class="card" method="post" action="/generate">
    <h2>Blog Post Generator</h2>
    {% if error %}
    <div class="form-error error-text" role="alert">{{ error }}</div>
    {% endif %}
    <label for="topic">Topic / Title</label>
    <input id="topic" name="topic" type="text" value="{{ topic }}"
           placeholder="e.g., The Future of AI in Healthcare">
    <label for="instructions">Additional Instructions (Optional)</label>
    <textarea id="instructions" name="instructions" rows="4"
              placeholder="Add any specific requirements, target audience, tone preferences...">{{ instructions }}</textarea>
    <button class="btn btn-primary btn-lg" type="submit" style="width: 100%;">
      🚀 {% if error and topic %}Try Again{% else %}Generate Blog Post{% endif %}
    </button>
    <p class="faint">Generation runs all four agents and can take a few minutes.</p>
  </form>

  <div class="grid grid-4" style="margin-top: 32px;">
    {% for title, icon in agent_cards %}
    <div class="card" style="text-align: center;">
      <div style="font-size: 1.5rem;">{{ icon }}</div>
      <div>{{ title }}</div>
      <div class="faint">Ready</div>
    </div>
    {% endfor %}
  </div>
{% endblock %}
"""

_DASHBOARD_TEMPLATE = """{% extends "app.html" %}
{% block title %}Dashboard &middot; {{ app_name }}{% endblock %}
{% block page_style %}
    .header { display: flex; justify-content: space-between; align-items: flex-end; }
    .stat-value { font-size: 2.4rem; font-weight: 700; margin: 8px 0; }
    .progress { height: 8px; border-radius: 999px; background: var(--panel-soft); }
    .progress > div {
      height: 100%; border-radius: 999px;
      background: linear-gradient(90deg, #10b981, #22c55e);
    }
    .post-row {
      display: flex; align-items: center; gap: 16px; padding: 16px 0;
      border-bottom: 1px solid var(--line);
    }
    .post-row:last-child { border-bottom: none; }
    .post-index {
      width: 40px; height: 40px; border-radius: 12px; display: flex; align-items: center;
      justify-content: center; background: var(--panel-soft); font-weight: 700;
    }
    .post-main { flex: 1; }
    .post-main h4 { margin: 0 0 4px; }
    .empty { text-align: center; padding: 48px 0; }
{% endblock %}
{% block content %}
  <div class="header">
    <div>
      <h1>Dashboard</h1>
      <p class="muted">Track your content generation performance</p>
    </div>
    <a class="btn btn-primary" href="/generate">✍️ Generate New Post</a>
  </div>

  <div class="grid grid-3" style="margin: 24px 0 32px;">
    <div class="card">
      <div class="muted">Total Posts 📊</div>
      <div class="stat-value" data-stat="total">{{ stats.total_posts }}</div>
      <p class="faint">Generated blog posts</p>
    </div>
    <div class="card">
      <div class="muted">Success Rate ✓</div>
      <div class="stat-value" data-stat="success-rate">{{ stats.success_rate }}%</div>
      <p class="faint">Fact-check pass rate</p>
      <div class="progress"><div style="width: {{ stats.success_rate }}%;"></div></div>
    </div>
    <div class="card">
      <div class="muted">Avg Retries 🔄</div>
      <div class="stat-value" data-stat="avg-retries">{{ stats.avg_retries }}</div>
      <p class="faint">Per successful post</p>
    </div>
  </div>

  <section class="card">
    <div class="header">
      <h2>📝 Recent Posts</h2>
      {% if posts %}<span class="badge">{{ posts | length }} total</span>{% endif %}
    </div>
    {% if not posts %}
    <div class="empty">
      <div style="font-size: 3rem;">📝</div>
      <h3>No posts yet</h3>
      <p class="muted">
        Generate your first blog post to see it here. Our agents will research,
        write, fact-check, and polish your content.
      </p>
      <a class="btn btn-primary btn-lg" href="/generate">✍️ Generate Your First Post</a>
    </div>
    {% else %}
    {% for post in posts %}
    <div class="post-row">
      <div class="post-index">{{ loop.index }}</div>
      <div class="post-main">
        <h4>{{ post_title(post) }}</h4>
        <span class="faint">{{ format_date(post.created_at, tz) }}</span>
      </div>
      {% if post.fact_check_passed %}
      <span class="badge badge-ok">✓ Verified</span>
      {% else %}
      <span class="badge badge-warn">⚠ Pending</span>
      {% endif %}
      <span class="badge">{{ post.retry_count }} retries</span>
      <a class="btn btn-outline" href="{{ timeline_href(post.run_id) }}">View &rarr;</a>
    </div>
    {% endfor %}
    {% endif %}
  </section>

  <section class="card" style="margin-top: 32px;">
    <h4>💡 Pro Tip</h4>
    <p class="muted">
      For best results, provide specific topics with context. For example, instead of
      &quot;AI&quot;, try &quot;How AI is transforming healthcare diagnostics in 2025&quot;.
      More context helps the agents create more targeted content.
    </p>
  </section>
{% endblock %}
"""

_TIMELINE_TEMPLATE = """{% extends "app.html" %}
{% block title %}Timeline &middot; {{ app_name }}{% endblock %}
{% block page_style %}
    .timeline { position: relative; }
    .timeline::before {
      content: ""; position: absolute; left: 24px; top: 0; bottom: 0; width: 2px;
      background: var(--line);
    }
    .entry { position: relative; padding-left: 64px; margin-bottom: 24px; }
    .node {
      position: absolute; left: 12px; top: 16px; width: 28px; height: 28px;
      border-radius: 999px; display: flex; align-items: center; justify-content: center;
      font-size: 0.85rem;
    }
    .connector { position: absolute; left: 20px; bottom: -20px; color: #475569; }
    .entry-head { display: flex; justify-content: space-between; align-items: center; }
    .entry-head h3 { margin: 0; display: flex; gap: 8px; align-items: center; }
    .chips { display: flex; flex-wrap: wrap; gap: 10px; margin-top: 12px; font-size: 0.78rem; }
    .chip { padding: 4px 8px; border-radius: 6px; background: var(--panel-soft); color: var(--muted); }
    .chip-warn { background: rgba(234, 179, 8, 0.1); color: #facc15; }
    .chip-error { background: rgba(239, 68, 68, 0.1); color: var(--danger); }
    .sources { margin-top: 16px; }
    .sources ul { max-height: 128px; overflow-y: auto; padding: 12px 24px; }
    .sources a { color: #22d3ee; word-break: break-all; }
    .accent-research { background: linear-gradient(135deg, #3b82f6, #06b6d4); }
    .accent-writer { background: linear-gradient(135deg, #8b5cf6, #a855f7); }
    .accent-factcheck { background: linear-gradient(135deg, #10b981, #22c55e); }
    .accent-polish { background: linear-gradient(135deg, #f59e0b, #f97316); }
    .accent-unknown { background: linear-gradient(135deg, #64748b, #475569); }
    .card-research { border-color: rgba(59, 130, 246, 0.3); background: rgba(59, 130, 246, 0.1); }
    .card-writer { border-color: rgba(139, 92, 246, 0.3); background: rgba(139, 92, 246, 0.1); }
    .card-factcheck { border-color: rgba(16, 185, 129, 0.3); background: rgba(16, 185, 129, 0.1); }
    .card-polish { border-color: rgba(245, 158, 11, 0.3); background: rgba(245, 158, 11, 0.1); }
    .card-unknown { border-color: rgba(100, 116, 139, 0.3); background: rgba(100, 116, 139, 0.1); }
    .actions { display: flex; justify-content: center; gap: 16px; margin-top: 40px; }
    dialog {
      width: min(900px, 92vw); max-height: 85vh; padding: 0; border-radius: 16px;
      border: 1px solid var(--line); background: var(--panel); color: var(--ink);
    }
    dialog::backdrop { background: rgba(2, 6, 23, 0.7); }
    .dialog-head { padding: 20px 24px; border-bottom: 1px solid var(--line); }
    .dialog-body { padding: 20px 24px; max-height: calc(85vh - 180px); overflow-y: auto; }
    .dialog-foot {
      padding: 16px 24px; border-top: 1px solid var(--line);
      display: flex; justify-content: flex-end; gap: 12px;
    }
{% endblock %}
{% block content %}
  {% if run %}
  {% set run_status = status_display(run.status) %}
  <header style="margin-bottom: 32px;">
    <span class="badge {{ run_status.css_class }}">{{ run_status.label }}</span>
    <span class="faint mono">Run ID: {{ run.run_id[:8] }}...</span>
    <h1>{{ truncate_title(run.content) }}</h1>
    <div class="muted">
      <span>Started: {{ format_timestamp(run.created_at, tz) }}</span>
      <span>&bull;</span>
      <span>Duration: {{ calculate_duration(run.created_at, run.finished_at) }}</span>
    </div>
  </header>
  {% else %}
  <header style="margin-bottom: 32px;">
    <span class="faint mono">Run ID: {{ run_id[:8] }}...</span>
    <h1>Run Timeline</h1>
  </header>
  {% endif %}
  <hr style="border: none; border-top: 1px solid var(--line); margin-bottom: 32px;">

  {% if not entries %}
  <div class="card muted">No agent logs recorded for this run yet.</div>
  {% else %}
  <div class="timeline">
    {% for entry in entries %}
    {% set agent = agent_display(entry.agent) %}
    {% set status = status_display(entry.status) %}
    {% set meta = entry.metadata %}
    <div class="entry" data-agent="{{ entry.agent }}">
      <div class="node accent-{{ agent.accent }}">{{ agent.icon }}</div>
      <article class="card card-{{ agent.accent }}">
        <div class="entry-head">
          <h3>
            {{ agent.title }}
            {% if meta and meta.retry_count and meta.retry_count > 0 %}
            <span class="badge badge-warn">🔄 {{ meta.retry_count }} retry</span>
            {% endif %}
          </h3>
          <span class="badge {{ status.css_class }}">{{ status.label }}</span>
        </div>
        <div class="faint">{{ format_timestamp(entry.created_at, tz) }}</div>
        <div class="markdown">{{ entry.content | markdown }}</div>

        {% if meta %}
        <div class="chips">
          {% if meta.word_count %}<span class="chip">📝 {{ meta.word_count }} words</span>{% endif %}
          {% if meta.facts_verified is not none %}
          <span class="chip">✅ {{ meta.facts_verified }} facts verified</span>
          {% endif %}
          {% if meta.facts_flagged is not none and meta.facts_flagged > 0 %}
          <span class="chip chip-warn">⚠️ {{ meta.facts_flagged }} flagged</span>
          {% endif %}
          {% if meta.sources %}<span class="chip">🔗 {{ meta.sources | length }} sources</span>{% endif %}
          {% if meta.error_message %}
          <span class="chip chip-error">{{ meta.error_message }}</span>
          {% endif %}
        </div>
        {% if meta.sources %}
        <details class="sources">
          <summary class="muted">View Sources ({{ meta.sources | length }})</summary>
          <ul>
            {% for source in meta.sources %}
            {% if is_web_url(source) %}
            <li><a href="{{ source }}" target="_blank" rel="noopener noreferrer">{{ source }}</a></li>
            {% else %}
            <li class="muted">{{ source }}</li>
            {% endif %}
            {% endfor %}
          </ul>
        </details>
        {% endif %}
        {% endif %}
      </article>
      {% if not loop.last %}<div class="connector">&darr;</div>{% endif %}
    </div>
    {% endfor %}
  </div>
  {% endif %}

  {% if run and run.status == "completed" %}
  <div class="actions">
    <button class="btn btn-primary" type="button" id="viewFinalPostBtn">📄 View Final Post</button>
    <a class="btn btn-outline" href="{{ export_href }}">💾 Export as Markdown</a>
  </div>

  <dialog id="finalPostDialog">
    <div class="dialog-head"><h2>{{ run.content }}</h2></div>
    <div class="dialog-body markdown">
      {% if final_post %}{{ final_post | markdown }}{% else %}
      <p class="muted">The final post is not available yet.</p>{% endif %}
    </div>
    <textarea id="finalPostSource" hidden readonly>{{ final_post }}</textarea>
    <div class="dialog-foot">
      <button class="btn btn-outline" type="button" id="closeFinalPostBtn">Close</button>
      <button class="btn btn-outline" type="button" id="copyFinalPostBtn">📋 Copy</button>
      <a class="btn btn-primary" href="{{ export_href }}">💾 Download</a>
    </div>
  </dialog>
  {% endif %}
{% endblock %}
{% block script %}
  {% if run and run.status == "completed" %}
  <script>
    const dialog = document.getElementById("finalPostDialog");
    const copyBtn = document.getElementById("copyFinalPostBtn");
    document.getElementById("viewFinalPostBtn").addEventListener("click", () => dialog.showModal());
    document.getElementById("closeFinalPostBtn").addEventListener("click", () => dialog.close());
    copyBtn.addEventListener("click", async () => {
      const text = document.getElementById("finalPostSource").value;
      await navigator.clipboard.writeText(text);
      copyBtn.textContent = "✓ Copied";
    });
  </script>
  {% endif %}
{% endblock %}
"""

_ERROR_TEMPLATE = """{% extends "app.html" %}
{% block title %}Error &middot; {{ app_name }}{% endblock %}
{% block content %}
  <div class="card error-card" style="max-width: 520px; margin: 64px auto; text-align: center;">
    <h3>{{ title }}</h3>
    <p class="error-text">{{ message }}</p>
    <a class="btn btn-outline" href="{{ retry_href }}">Try Again</a>
  </div>
{% endblock %}
"""


def is_web_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


_env = Environment(
    loader=DictLoader(
        {
            "base.html": _BASE_TEMPLATE,
            "app.html": _APP_TEMPLATE,
            "home.html": _HOME_TEMPLATE,
            "generate.html": _GENERATE_TEMPLATE,
            "dashboard.html": _DASHBOARD_TEMPLATE,
            "timeline.html": _TIMELINE_TEMPLATE,
            "error.html": _ERROR_TEMPLATE,
        }
    ),
    autoescape=True,
)
_env.filters["markdown"] = render_markdown
_env.globals.update(
    nav_items=SIDEBAR_ITEMS,
    agent_display=agent_display,
    status_display=status_display,
    format_timestamp=format_timestamp,
    format_date=format_date,
    calculate_duration=calculate_duration,
    post_title=post_title,
    truncate_title=truncate_title,
    timeline_href=timeline_href,
    is_web_url=is_web_url,
)


def render_homepage(*, year: int, app_name: str = DEFAULT_APP_NAME) -> str:
    return _env.get_template("home.html").render(
        app_name=app_name,
        pipeline_steps=PIPELINE_STEPS,
        features=FEATURES,
        year=year,
    )


def render_generate_page(
    *,
    topic: str = "",
    instructions: str = "",
    error: str | None = None,
    app_name: str = DEFAULT_APP_NAME,
) -> str:
    return _env.get_template("generate.html").render(
        app_name=app_name,
        current_path="/generate",
        topic=topic,
        instructions=instructions,
        error=error,
        agent_cards=AGENT_STATUS_CARDS,
    )


def render_dashboard(
    *,
    posts: list[PostSummary],
    stats: DashboardStats,
    tz: tzinfo = timezone.utc,
    app_name: str = DEFAULT_APP_NAME,
) -> str:
    return _env.get_template("dashboard.html").render(
        app_name=app_name,
        current_path="/dashboard",
        posts=posts,
        stats=stats,
        tz=tz,
    )


def render_timeline(
    *,
    run_id: str,
    run: TimelineRun | None,
    entries: list[TimelineEntry],
    final_post: str = "",
    export_href: str = "",
    tz: tzinfo = timezone.utc,
    app_name: str = DEFAULT_APP_NAME,
) -> str:
    return _env.get_template("timeline.html").render(
        app_name=app_name,
        current_path=f"/timeline/{run_id}",
        run_id=run_id,
        run=run,
        entries=entries,
        final_post=final_post,
        export_href=export_href,
        tz=tz,
    )


def render_error(
    *,
    title: str,
    message: str,
    retry_href: str,
    current_path: str,
    app_name: str = DEFAULT_APP_NAME,
) -> str:
    return _env.get_template("error.html").render(
        app_name=app_name,
        current_path=current_path,
        title=title,
        message=message,
        retry_href=retry_href,
    )
