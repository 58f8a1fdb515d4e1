"""Remote collaborators: HTTP plumbing, image provider and text services."""
