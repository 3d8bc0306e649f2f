"""offline-vsix: download VS Code extensions for offline installation."""
