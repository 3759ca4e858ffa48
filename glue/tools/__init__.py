"""Ready-made filesystem and git tools for agents."""