"""HTTP routers for tasks, daily sessions and the focus timer."""
