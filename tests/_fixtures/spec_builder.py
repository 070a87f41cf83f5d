"""Helpers for writing OpenAPI documents into temporary directories."""

from __future__ import annotations

import textwrap
from pathlib import Path

PETSTORE_YAML = """
openapi: 3.0.3
info:
  title: Petstore API
  version: 1.0.0
  description: A sample API for managing pets.
servers:
  - url: https://api.petstore.com/v1
tags:
  - name: pets
    description: Pet operations
  - name: store
    description: Store operations
paths:
  /pets:
    get:
      tags: [pets]
      operationId: listPets
      summary: List all pets
      parameters:
        - name: limit
          in: query
          schema:
            type: integer
      responses:
        "200":
          description: A list of pets
          content:
            application/json:
              schema:
                type: array
                items:
                  $ref: "#/components/schemas/Pet"
    post:
      tags: [pets]
      operationId: createPet
      summary: Create a pet
      requestBody:
        required: true
        content:
          application/json:
            schema:
              $ref: "#/components/schemas/CreatePetRequest"
      responses:
        "201":
          description: Created
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/Pet"
  /pets/{petId}:
    get:
      tags: [pets]
      operationId: getPet
      summary: Get a pet by id
      parameters:
        - name: petId
          in: path
          required: true
          schema:
            type: string
      responses:
        "200":
          description: A pet
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/Pet"
  /store/inventory:
    get:
      tags: [store]
      operationId: getInventory
      summary: Inventory counts by status
      responses:
        "200":
          description: Inventory
          content:
            application/json:
              schema:
                type: object
                additionalProperties:
                  type: integer
  /health:
    get:
      operationId: health
      responses:
        "200":
          description: OK
components:
  securitySchemes:
    apiKey:
      type: apiKey
      in: header
      name: X-API-Key
  schemas:
    Pet:
      type: object
      required: [id, name]
      properties:
        id:
          type: string
        name:
          type: string
        tag:
          type: string
    CreatePetRequest:
      type: object
      required: [name]
      properties:
        name:
          type: string
        tag:
          type: string
security:
  - apiKey: []
"""

CIRCULAR_YAML = """
openapi: 3.1.0
info:
  title: Tree API
  version: 0.1.0
paths:
  /nodes:
    get:
      tags: [nodes]
      operationId: listNodes
      responses:
        "200":
          description: Nodes
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/Node"
components:
  schemas:
    Node:
      type: object
      properties:
        name:
          type: string
        children:
          type: array
          items:
            $ref: "#/components/schemas/Node"
"""

SWAGGER_YAML = """
swagger: "2.0"
info:
  title: Legacy API
  version: 1.0.0
paths: {}
"""


class SpecBuilder:
    """Writes API descriptions under a throwaway directory."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "specs"
        self.root.mkdir()

    def write(self, name: str, content: str) -> Path:
        """Write ``content`` (dedented) to ``name`` and return its path."""
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return path

    def petstore(self, name: str = "petstore.yaml", *, title: str = "Petstore API") -> Path:
        return self.write(name, PETSTORE_YAML.replace("title: Petstore API", f"title: {title}"))

    def petstore_with_pet_field(self, field_name: str, name: str = "petstore.yaml") -> Path:
        """Petstore variant whose ``Pet`` schema gains one extra string property."""
        extra = f"        {field_name}:\n          type: string\n"
        content = PETSTORE_YAML.replace(
            "        tag:\n          type: string\n    CreatePetRequest:",
            f"        tag:\n          type: string\n{extra}    CreatePetRequest:",
        )
        return self.write(name, content)

    def circular(self, name: str = "tree.yaml") -> Path:
        return self.write(name, CIRCULAR_YAML)

    def swagger(self, name: str = "swagger.yaml") -> Path:
        return self.write(name, SWAGGER_YAML)


__all__ = ["CIRCULAR_YAML", "PETSTORE_YAML", "SWAGGER_YAML", "SpecBuilder"]
