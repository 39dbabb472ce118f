"""Product catalog, selection and AI routine chat for the L'Oréal routine builder."""
