"""Task services and the reminder / planner rules."""
