"""rowcue command line front end."""
