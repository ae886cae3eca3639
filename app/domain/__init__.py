"""Domain packages: repository, service, schemas and router per business area"""
