"""Auto-listen and push-to-talk capture controllers."""
