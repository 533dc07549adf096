from dotenv import load_dotenv

from flowkeeper import FlowSync, extract, list_sources, load_settings, rehydrate


load_dotenv()

# List available definition sources
print("Available sources:", list_sources())

# Offline: redact a definition in memory
result = extract(
    {
        "actions": {
            "Send_email": {
                "type": "OpenApiConnection",
                "inputs": {"to": "alice@contoso.com", "subject": "Weekly report"},
            }
        }
    }
)
print(result.redacted)
print(result.counts)

# The mapping never leaves this process; it is only used to restore values
restored = rehydrate(result.redacted, result.mapping)
print("Round trip restores values:", "alice@contoso.com" in restored)

# Sync with a source configured through FLOWKEEPER_* variables (see .env)
settings = load_settings()
sync = FlowSync.from_settings(settings)

output = sync.pull("my-flow-id", "flows/my-flow.json")
print(output.to_summary())

# ... edit flows/my-flow.json ...
# output = sync.push("my-flow-id", "flows/my-flow.json", dry_run=True)
# print(output.to_summary())
# print(output.checks)
