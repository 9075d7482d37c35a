"""Instanced geometry promotion: index remapping, resource slicing, record builders."""
