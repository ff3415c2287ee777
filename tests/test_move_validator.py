import unittest

import chess
import chess.variant

from votechess.move_validator import legal_moves, parse_move

ITALIAN = "r1bqk1nr/pppp1ppp/2n5/2b1p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"
PROMOTION = "8/4P3/8/8/8/k7/8/4K3 w - - 0 1"


def _uci(board, text, lenient=True):
    mv = parse_move(board, text, lenient=lenient)
    return mv.uci() if mv else None


class LenientParsingTests(unittest.TestCase):
    def setUp(self):
        self.board = chess.Board()

    def test_equivalent_forms_of_the_same_move(self):
        for text in ["e4", "e2e4", "e2-e4", "e4!?", "  e4  "]:
            self.assertEqual(_uci(self.board, text), "e2e4", text)
        for text in ["Nf3", "nf3", "Ng1f3", "Ng1-f3", "g1f3"]:
            self.assertEqual(_uci(self.board, text), "g1f3", text)

    def test_castling_spellings(self):
        board = chess.Board(ITALIAN)
        for text in ["O-O", "0-0", "o-o", "e1g1"]:
            self.assertEqual(_uci(board, text), "e1g1", text)

    def test_promotion_spellings(self):
        board = chess.Board(PROMOTION)
        for text in ["e8=Q", "e8Q", "e7e8q", "e7-e8=Q"]:
            self.assertEqual(_uci(board, text), "e7e8q", text)
        self.assertEqual(_uci(board, "e7e8n"), "e7e8n")

    def test_illegal_and_malformed_proposals(self):
        for text in ["e5", "Qh5", "Ke2", "hello", "", "   ", "!!", "z9z9", "Bg1f3", "e2e5"]:
            self.assertIsNone(parse_move(self.board, text), repr(text))

    def test_null_moves_are_rejected(self):
        for text in ["--", "0000", "Z0"]:
            self.assertIsNone(parse_move(self.board, text), text)

    def test_strict_mode_only_takes_san_or_exact_uci(self):
        self.assertEqual(_uci(self.board, "Nf3", lenient=False), "g1f3")
        self.assertEqual(_uci(self.board, "g1f3", lenient=False), "g1f3")
        board = chess.Board(ITALIAN)
        self.assertIsNone(parse_move(board, "o-o", lenient=False))
        self.assertEqual(_uci(board, "o-o"), "e1g1")

    def test_drops_only_exist_in_crazyhouse(self):
        self.assertIsNone(parse_move(self.board, "P@e4"))
        zh = chess.variant.CrazyhouseBoard()
        for uci in ["e2e4", "d7d5", "e4d5", "d8d5"]:
            zh.push_uci(uci)
        for text in ["P@e4", "p@e4"]:
            mv = parse_move(zh, text)
            self.assertIsNotNone(mv, text)
            self.assertEqual(mv.drop, chess.PAWN)
            self.assertEqual(mv.to_square, chess.E4)

    def test_parsing_does_not_touch_the_board(self):
        fen = self.board.fen()
        parse_move(self.board, "e4")
        parse_move(self.board, "garbage")
        self.assertEqual(self.board.fen(), fen)

    def test_legal_moves_lists_start_position(self):
        moves = legal_moves(self.board)
        self.assertEqual(len(moves), 20)
        self.assertIn("e2e4", moves)
        self.assertEqual(moves, sorted(moves))


if __name__ == "__main__":
    unittest.main()
