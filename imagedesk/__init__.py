"""imagedesk: image pipeline for the TeamWave content-management front end."""
