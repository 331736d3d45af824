"""HTML/JS for the single-page code explainer served at ``/``.

The page never computes alignment itself: it draws the ``alignment`` block
returned by ``POST /analyze`` (line -> step index and trimmed highlight
ranges) and only wires hover events on top of it.
"""

UI_HTML = r"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>CodeStory</title>
<style>
  *, *::before, *::after { box-sizing: border-box; }
  body {
    margin: 0;
    background: #0f172a;
    color: #e2e8f0;
    font-family: 'Segoe UI', system-ui, -apple-system, sans-serif;
  }
  header {
    padding: 12px 20px;
    background: #1e293b;
    border-bottom: 1px solid #334155;
    font-weight: 600;
    color: #38bdf8;
  }
  main { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; padding: 16px 20px; }
  textarea {
    width: 100%; min-height: 320px;
    background: #020617; color: #e2e8f0;
    border: 1px solid #334155; border-radius: 6px;
    font-family: ui-monospace, SFMono-Regular, Menlo, monospace; font-size: 13px;
    padding: 8px;
  }
  .controls { display: flex; flex-wrap: wrap; gap: 8px; margin: 8px 0; align-items: center; }
  select, button {
    background: #1e293b; color: #e2e8f0;
    border: 1px solid #334155; border-radius: 6px; padding: 6px 10px;
  }
  button { cursor: pointer; }
  button:disabled { opacity: 0.6; cursor: wait; }
  h2 { font-size: 15px; color: #94a3b8; margin: 16px 0 6px; display: flex; gap: 8px; align-items: center; }
  #output-panel { display: none; }
  #code-view {
    background: #020617; border: 1px solid #334155; border-radius: 6px;
    font-family: ui-monospace, SFMono-Regular, Menlo, monospace; font-size: 13px;
    max-height: 520px; overflow: auto; padding: 6px 0;
  }
  .code-line { white-space: pre; padding: 0 8px; }
  .code-line[data-step-index] { cursor: pointer; }
  .code-line.highlight { background: #1d4ed855; }
  .line-number { color: #475569; margin-right: 12px; user-select: none; }
  .walkthrough-step { padding: 3px 4px; border-radius: 4px; }
  .walkthrough-step.highlight-step { background: #1d4ed855; }
  .sev-critical { color: #f87171; }
  .sev-high { color: #fb923c; }
  .sev-medium { color: #facc15; }
  .sev-low { color: #4ade80; }
  .issue-explanation { color: #94a3b8; font-size: 13px; }
</style>
</head>
<body>
<header>CodeStory</header>
<main>
  <section>
    <textarea id="code-input" placeholder="Paste code here..."></textarea>
    <div class="controls">
      <select id="language">
        <option value="auto">Auto-detect</option>
        <option value="python">Python</option>
        <option value="javascript">JavaScript</option>
        <option value="typescript">TypeScript</option>
        <option value="go">Go</option>
        <option value="java">Java</option>
        <option value="rust">Rust</option>
      </select>
      <select id="skill-level">
        <option value="beginner">Beginner</option>
        <option value="intermediate">Intermediate</option>
        <option value="expert">Expert</option>
      </select>
      <select id="provider">
        <option value="openai">OpenAI</option>
        <option value="gemini">Gemini</option>
        <option value="anthropic">Anthropic</option>
      </select>
      <select id="model">
        <option value="gpt-4.1-mini">gpt-4.1-mini</option>
        <option value="gpt-4.1">gpt-4.1</option>
        <option value="gpt-4o-mini">gpt-4o-mini</option>
      </select>
      <button id="analyze-btn">Analyze Code</button>
    </div>
    <h2>Code</h2>
    <div id="code-view"></div>
  </section>
  <section id="output-panel">
    <h2>Summary <button id="copy-summary-btn">Copy</button></h2>
    <p id="summary"></p>
    <h2>Risk overview <button id="copy-risk-btn">Copy</button></h2>
    <p id="risk-overview"></p>
    <h2>Walkthrough</h2>
    <ol id="walkthrough"></ol>
    <h2>Issues <button id="copy-issues-btn">Copy</button></h2>
    <h3>Performance</h3><ul id="issues-performance"></ul>
    <h3>Security</h3><ul id="issues-security"></ul>
    <h3>Maintainability</h3><ul id="issues-maintainability"></ul>
    <h2>Suggestions <button id="copy-suggestions-btn">Copy</button></h2>
    <ul id="suggestions"></ul>
    <button id="copy-full-report-btn">Copy full report</button>
  </section>
</main>

<script>
const $ = (id) => document.getElementById(id);
const codeViewEl = $('code-view');
const walkthroughEl = $('walkthrough');

// One immutable view per analysis; swapped wholesale, never patched.
let current = null;

function buildView(code, data) {
  const alignment = data.alignment || {};
  return Object.freeze({
    data,
    lines: code ? code.split('\n') : [],
    lineToStep: Object.freeze({ ...(alignment.line_to_step || {}) }),
    highlights: Object.freeze([...(alignment.highlights || [])]),
  });
}

function clearHighlights() {
  codeViewEl.querySelectorAll('.code-line.highlight')
    .forEach(el => el.classList.remove('highlight'));
  walkthroughEl.querySelectorAll('.walkthrough-step.highlight-step')
    .forEach(el => el.classList.remove('highlight-step'));
}

function highlightStep(view, stepIndex) {
  clearHighlights();
  const step = walkthroughEl.querySelector(`.walkthrough-step[data-step-index="${stepIndex}"]`);
  if (step) step.classList.add('highlight-step');
  const range = view.highlights[stepIndex];
  if (!range) return;
  for (let ln = range.start_line; ln <= range.end_line; ln++) {
    const lineEl = codeViewEl.querySelector(`.code-line[data-line="${ln}"]`);
    if (lineEl) lineEl.classList.add('highlight');
  }
}

function renderCodeView(view) {
  codeViewEl.innerHTML = '';
  view.lines.forEach((line, idx) => {
    const lineNumber = idx + 1;
    const div = document.createElement('div');
    div.className = 'code-line';
    div.dataset.line = String(lineNumber);

    const mapped = view.lineToStep[String(lineNumber)];
    if (mapped !== undefined) div.dataset.stepIndex = String(mapped);

    const numSpan = document.createElement('span');
    numSpan.className = 'line-number';
    numSpan.textContent = String(lineNumber).padStart(3, ' ');
    const textSpan = document.createElement('span');
    textSpan.textContent = line;
    div.append(numSpan, textSpan);

    div.addEventListener('mouseenter', () => {
      if (div.dataset.stepIndex !== undefined && current === view) {
        highlightStep(view, Number(div.dataset.stepIndex));
      }
    });
    div.addEventListener('mouseleave', clearHighlights);
    codeViewEl.appendChild(div);
  });
}

function renderIssueList(container, issues) {
  container.innerHTML = '';
  (issues || []).forEach(issue => {
    const li = document.createElement('li');
    const sev = document.createElement('strong');
    sev.className = `sev-${issue.severity}`;
    sev.textContent = `[${issue.severity.toUpperCase()}] `;
    const msg = document.createElement('span');
    msg.textContent = issue.message;
    li.append(sev, msg);
    if (issue.explanation) {
      const exp = document.createElement('div');
      exp.className = 'issue-explanation';
      exp.textContent = issue.explanation;
      li.appendChild(exp);
    }
    container.appendChild(li);
  });
}

function renderResults(view) {
  const data = view.data;
  $('summary').textContent = data.summary || '';
  $('risk-overview').textContent = data.risk_overview || '';
  renderCodeView(view);

  walkthroughEl.innerHTML = '';
  (data.walkthrough || []).forEach((text, idx) => {
    const li = document.createElement('li');
    li.className = 'walkthrough-step';
    li.dataset.stepIndex = String(idx);
    li.textContent = text;
    li.addEventListener('mouseenter', () => { if (current === view) highlightStep(view, idx); });
    li.addEventListener('mouseleave', clearHighlights);
    walkthroughEl.appendChild(li);
  });

  renderIssueList($('issues-performance'), data.issues.performance);
  renderIssueList($('issues-security'), data.issues.security);
  renderIssueList($('issues-maintainability'), data.issues.maintainability);

  const suggestionsEl = $('suggestions');
  suggestionsEl.innerHTML = '';
  (data.suggestions || []).forEach(s => {
    const li = document.createElement('li');
    li.textContent = s;
    suggestionsEl.appendChild(li);
  });
  $('output-panel').style.display = 'block';
}

async function copySection(section, label) {
  if (!current) { alert('Run an analysis first.'); return; }
  const resp = await fetch('/api/report', {
    method: 'POST',
    headers: { 'Content-Type': 'application/json' },
    body: JSON.stringify(current.data),
  });
  const body = await resp.json();
  const text = (body.sections || {})[section] || '';
  if (!text.trim()) { alert(`No ${label} available to copy yet.`); return; }
  try {
    await navigator.clipboard.writeText(text);
    alert(`${label} copied to clipboard.`);
  } catch (err) {
    console.error('Clipboard error:', err);
    alert(`Could not copy ${label}. Check browser permissions.`);
  }
}

$('copy-summary-btn').addEventListener('click', () => copySection('summary', 'summary'));
$('copy-risk-btn').addEventListener('click', () => copySection('risk', 'summary + risk overview'));
$('copy-issues-btn').addEventListener('click', () => copySection('issues', 'issues'));
$('copy-suggestions-btn').addEventListener('click', () => copySection('suggestions', 'suggestions'));
$('copy-full-report-btn').addEventListener('click', () => copySection('full', 'full report'));

$('analyze-btn').addEventListener('click', async () => {
  const btn = $('analyze-btn');
  const code = $('code-input').value;
  btn.disabled = true;
  btn.textContent = 'Analyzing...';
  try {
    const resp = await fetch('/analyze', {
      method: 'POST',
      headers: { 'Content-Type': 'application/json' },
      body: JSON.stringify({
        code,
        language: $('language').value,
        skillLevel: $('skill-level').value,
        provider: $('provider').value,
        model: $('model').value,
      }),
    });
    const data = await resp.json();
    if (data.error) { alert(data.error); return; }
    const view = buildView(code, data);
    current = view;
    renderResults(view);
  } catch (err) {
    console.error(err);
    alert('There was an error talking to the analyzer.');
  } finally {
    btn.disabled = false;
    btn.textContent = 'Analyze Code';
  }
});
</script>
</body>
</html>
"""
