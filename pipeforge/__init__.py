"""pipeforge -- pipeline execution daemon."""
