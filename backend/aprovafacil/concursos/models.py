import uuid
from sqlalchemy import Column, String, Integer, Numeric, Boolean, Date, DateTime, Text, Uuid, ForeignKey
from sqlalchemy.orm import relationship
from aprovafacil.core.database import Base, utcnow


class ConcursoCategoria(Base):
    __tablename__ = "concurso_categorias"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    nome = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    descricao = Column(Text, nullable=True)
    cor_primaria = Column(String, default="#2563EB")
    cor_secundaria = Column(String, default="#1E40AF")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # RELACIONAMENTOS: uma categoria agrupa disciplinas e concursos
    disciplinas = relationship("CategoriaDisciplina", back_populates="categoria", cascade="all, delete-orphan",
                               order_by="CategoriaDisciplina.ordem")
    concursos = relationship("Concurso", back_populates="categoria")


class CategoriaDisciplina(Base):
    __tablename__ = "categoria_disciplinas"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    categoria_id = Column(Uuid, ForeignKey("concurso_categorias.id", ondelete="CASCADE"), nullable=False, index=True)
    nome = Column(String, nullable=False)
    peso = Column(Integer, nullable=False, default=1)       # Ex: 3 para Língua Portuguesa
    horas_semanais = Column(Integer, nullable=False, default=0)
    ordem = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    categoria = relationship("ConcursoCategoria", back_populates="disciplinas")


class Concurso(Base):
    __tablename__ = "concursos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    nome = Column(String, index=True, nullable=False)
    descricao = Column(Text, nullable=True)
    ano = Column(Integer, nullable=True)
    banca = Column(String, nullable=True)                    # Ex: "CESPE", "FCC"
    categoria_id = Column(Uuid, ForeignKey("concurso_categorias.id"), nullable=True, index=True)
    edital_url = Column(String, nullable=True)
    data_prova = Column(Date, nullable=True)
    vagas = Column(Integer, nullable=True)
    salario = Column(Numeric(10, 2), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    categoria = relationship("ConcursoCategoria", back_populates="concursos")
