# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real tokens. Use .env (local, gitignored).

Values starting with "YOUR_" count as unset: the console then reports
"needs configuration" and makes no network call.
"""

ENV_VARS = {
    # App / logging
    "COCKPIT_APP_NAME": "App display name (default: Cockpit Central).",
    "COCKPIT_LOG_LEVEL": "Console logging level (default: INFO).",
    "COCKPIT_DATA_DIR": "Local data directory for logs (default: .local/cockpit).",
    # Entra ID app registration (required)
    "COCKPIT_TENANT_ID": "Tenant GUID or domain, e.g. contoso.onmicrosoft.com.",
    "COCKPIT_CLIENT_ID": "Application (client) ID of the app registration.",
    "COCKPIT_REDIRECT_URI": "Redirect URI of the app registration (default: http://localhost:5173).",
    "COCKPIT_ACCESS_TOKEN": "Delegated Graph token (Sites.ReadWrite.All) from your sign-in helper.",
    # List backend (required)
    "COCKPIT_SITE_ID": "SharePoint site id, e.g. contoso.sharepoint.com,<guid>,<guid>.",
    "COCKPIT_LIST_ID": "Microsoft List id (GUID).",
    "COCKPIT_GRAPH_BASE_URL": "Graph base URL (default: https://graph.microsoft.com/v1.0).",
    "COCKPIT_PAGE_SIZE": "Max items fetched by /load (default: 500, first page only).",
    # HTTP
    "COCKPIT_HTTP_CONNECT_TIMEOUT_SECONDS": "Connect timeout (default: 5).",
    "COCKPIT_HTTP_READ_TIMEOUT_SECONDS": "Read timeout (default: 30).",
    # Labels (UI only; canonical keys are fixed)
    "COCKPIT_POLES": "e.g. 'BCS=Bien Chez Soi; EVO=Evolumis; PERSO=Personnel'.",
    "COCKPIT_STATUSES": "e.g. 'Backlog=Backlog; EnCours=En cours; EnAttente=En attente; Termine=Terminé'.",
    "COCKPIT_PRIORITIES": "e.g. 'P1=P1 (Urgent); P2=P2 (Normal); P3=P3 (Bas)'.",
}
