import uuid
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class CategoriaDisciplina(BaseModel):
    id: uuid.UUID
    categoria_id: uuid.UUID
    nome: str
    peso: int
    horas_semanais: int
    ordem: int

    class Config:
        from_attributes = True


class CategoriaDisciplinaCreate(BaseModel):
    categoria_id: uuid.UUID
    nome: str = Field(min_length=1, max_length=120)
    peso: int = Field(default=1, ge=1, le=100)
    horas_semanais: int = Field(default=0, ge=0)
    ordem: int = Field(default=0, ge=0)


class ConcursoCategoriaCreate(BaseModel):
    nome: str = Field(min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, max_length=120)  # gerado a partir do nome quando omitido
    descricao: Optional[str] = None
    cor_primaria: str = Field(default="#2563EB", pattern=r"^#[0-9A-Fa-f]{6}$")
    cor_secundaria: str = Field(default="#1E40AF", pattern=r"^#[0-9A-Fa-f]{6}$")


class ConcursoCategoria(BaseModel):
    id: uuid.UUID
    nome: str
    slug: str
    descricao: Optional[str] = None
    cor_primaria: Optional[str] = None
    cor_secundaria: Optional[str] = None
    is_active: bool = True

    class Config:
        from_attributes = True


class ConcursoBase(BaseModel):
    nome: str = Field(min_length=1, max_length=200)
    descricao: Optional[str] = None
    ano: Optional[int] = Field(default=None, ge=1900, le=2100)
    banca: Optional[str] = None
    categoria_id: Optional[uuid.UUID] = None
    edital_url: Optional[str] = None
    data_prova: Optional[date] = None
    vagas: Optional[int] = Field(default=None, ge=0)
    salario: Optional[float] = Field(default=None, ge=0)


class ConcursoCreate(ConcursoBase):
    pass


class Concurso(ConcursoBase):
    id: uuid.UUID
    is_active: bool
    created_at: Optional[datetime] = None
    categoria: Optional[ConcursoCategoria] = None

    class Config:
        from_attributes = True


class ConcursoResumo(BaseModel):
    id: uuid.UUID
    nome: str
    ano: Optional[int] = None
    banca: Optional[str] = None

    class Config:
        from_attributes = True


# Categoria com as disciplinas e concursos aninhados
class ConcursoCategoriaDetalhe(ConcursoCategoria):
    disciplinas: List[CategoriaDisciplina] = []
    concursos: List[ConcursoResumo] = []
