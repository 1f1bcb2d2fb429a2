"""JavaScript snippets injected into the page.

These are passed to execute_script unchanged. Console and network capture
hooks store entries on ``window`` so later invocations can read them back.
"""

INJECT_CONSOLE = """
if (!window.__safariCLI_console) {
  window.__safariCLI_console = [];
  const orig = {};
  ['log','warn','error','info','debug'].forEach(m => {
    orig[m] = console[m];
    console[m] = function(...args) {
      const msg = args.map(a => typeof a === 'object' ? JSON.stringify(a) : String(a)).join(' ');
      window.__safariCLI_console.push({ level: m.toUpperCase(), message: msg, timestamp: Date.now() });
      orig[m].apply(console, args);
    };
  });
  window.addEventListener('error', e => {
    window.__safariCLI_console.push({ level: 'ERROR', message: e.message + ' at ' + e.filename + ':' + e.lineno, timestamp: Date.now() });
  });
  window.addEventListener('unhandledrejection', e => {
    window.__safariCLI_console.push({ level: 'ERROR', message: 'Unhandled rejection: ' + String(e.reason), timestamp: Date.now() });
  });
}
return 'ok';
"""

READ_CONSOLE = "return window.__safariCLI_console || [];"
CLEAR_CONSOLE = 'window.__safariCLI_console = []; return "ok";'

INJECT_NETWORK = """
if (!window.__safariCLI_network) {
  window.__safariCLI_network = [];
  const origFetch = window.fetch;
  window.fetch = async function(...args) {
    const url = typeof args[0] === 'string' ? args[0] : args[0]?.url || '';
    const method = args[1]?.method || 'GET';
    const entry = { method, url, timestamp: Date.now(), status: null, duration: null };
    const start = performance.now();
    try {
      const resp = await origFetch.apply(this, args);
      entry.status = resp.status;
      entry.duration = Math.round(performance.now() - start);
      window.__safariCLI_network.push(entry);
      return resp;
    } catch(e) {
      entry.status = 0;
      entry.duration = Math.round(performance.now() - start);
      entry.error = String(e);
      window.__safariCLI_network.push(entry);
      throw e;
    }
  };
  const origOpen = XMLHttpRequest.prototype.open;
  const origSend = XMLHttpRequest.prototype.send;
  XMLHttpRequest.prototype.open = function(method, url) {
    this.__safariCLI = { method, url, timestamp: Date.now() };
    return origOpen.apply(this, arguments);
  };
  XMLHttpRequest.prototype.send = function() {
    const meta = this.__safariCLI;
    if (meta) {
      const start = performance.now();
      this.addEventListener('loadend', () => {
        meta.status = this.status;
        meta.duration = Math.round(performance.now() - start);
        window.__safariCLI_network.push(meta);
      });
    }
    return origSend.apply(this, arguments);
  };
}
return 'ok';
"""

READ_NETWORK = "return window.__safariCLI_network || [];"
CLEAR_NETWORK = 'window.__safariCLI_network = []; return "ok";'

# Safari has no /displayed endpoint, so visibility is computed in-page
INSPECT_ELEMENT = """
const el = arguments[0];
const attrs = {};
for (const attr of el.attributes) attrs[attr.name] = attr.value;
const style = window.getComputedStyle(el);
const displayed = style.display !== 'none' && style.visibility !== 'hidden' && el.offsetParent !== null;
return { attrs, displayed, enabled: !el.disabled };
"""

OUTER_HTML = "return arguments[0].outerHTML;"

DEVICE_PIXEL_RATIO = "return window.devicePixelRatio || 1;"

PERFORMANCE_METRICS = """
const nav = performance.getEntriesByType('navigation')[0] || {};
const paint = performance.getEntriesByType('paint');
const fp = paint.find(e => e.name === 'first-paint');
const fcp = paint.find(e => e.name === 'first-contentful-paint');
const resources = performance.getEntriesByType('resource');
return {
  url: location.href,
  domContentLoaded: Math.round(nav.domContentLoadedEventEnd || 0),
  loadComplete: Math.round(nav.loadEventEnd || 0),
  firstPaint: fp ? Math.round(fp.startTime) : null,
  firstContentfulPaint: fcp ? Math.round(fcp.startTime) : null,
  domInteractive: Math.round(nav.domInteractive || 0),
  responseTime: Math.round((nav.responseEnd || 0) - (nav.requestStart || 0)),
  resourceCount: resources.length,
  totalTransferSize: resources.reduce((sum, r) => sum + (r.transferSize || 0), 0),
};
"""
