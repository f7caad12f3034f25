# Utils package for the classifieds account area
